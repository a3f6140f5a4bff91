"""
Review Analysis Configuration
==============================

Every tunable threshold of the analysis engine lives here.
No magic numbers in the aggregation code.

Defaults can be overridden through environment variables
(or a .env file at the project root):

    REVIEW_QUOTE_MIN_LENGTH: Shortest quote inside the display window (default: 50)
    REVIEW_QUOTE_MAX_LENGTH: Longest quote inside the display window (default: 300)
    REVIEW_MAX_CATEGORY_QUOTES: Quotes kept per category (default: 3)
    REVIEW_SEGMENT_QUOTE_MIN_LENGTH: Shortest segment quote (default: 60)
    REVIEW_MAX_SEGMENT_QUOTES: Quotes kept per segment (default: 5)
    REVIEW_TOP_N: Size of top benefit/pain/transformation lists (default: 5)
    REVIEW_STORY_MIN_LENGTH: Shortest transformation story (default: 100)
    REVIEW_STORY_MAX_LENGTH: Story truncation length (default: 500)
    REVIEW_MAX_STORIES: Stories kept per product (default: 20)
    REVIEW_VERY_COMMON_PCT: "Very Common" above this percentage (default: 5.0)
    REVIEW_MODERATELY_COMMON_PCT: "Moderately Common" from this percentage (default: 2.0)
    REVIEW_WORKERS: Classification threads, 1 = sequential (default: 1)
    REVIEW_CATALOG_PATH: Optional JSON catalog replacing the built-in one
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load environment variables from .env file if present
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be a float, got: {value}")


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Thresholds for quote selection, top-N lists and frequency tiers.

    Quote thresholds are display heuristics: changing them changes which
    quotes are shown, never any count or percentage.
    """
    # Category quotes (per product, per layer)
    quote_min_length: int = 50
    quote_max_length: int = 300
    max_category_quotes: int = 3

    # Segment quotes
    segment_quote_min_length: int = 60
    max_segment_quotes: int = 5

    # Top associated categories per segment
    top_n: int = 5

    # Transformation stories
    story_min_length: int = 100
    story_max_length: int = 500
    max_stories: int = 20

    # Frequency tiers (percent of scope)
    very_common_threshold: float = 5.0      # > 5% = Very Common
    moderately_common_threshold: float = 2.0  # 2-5% = Moderately Common

    # Classification threads
    workers: int = 1

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.quote_min_length < 0 or self.quote_max_length < self.quote_min_length:
            raise ValueError("quote window must satisfy 0 <= min <= max")
        if self.max_category_quotes < 0 or self.max_segment_quotes < 0:
            raise ValueError("quote caps cannot be negative")
        if self.top_n < 0:
            raise ValueError("top_n cannot be negative")
        if self.story_max_length < self.story_min_length:
            raise ValueError("story_max_length must be >= story_min_length")
        if self.moderately_common_threshold > self.very_common_threshold:
            raise ValueError("moderately_common_threshold must be <= very_common_threshold")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Build a config from REVIEW_* environment variables."""
        defaults = cls()
        return cls(
            quote_min_length=get_env_int("REVIEW_QUOTE_MIN_LENGTH", defaults.quote_min_length),
            quote_max_length=get_env_int("REVIEW_QUOTE_MAX_LENGTH", defaults.quote_max_length),
            max_category_quotes=get_env_int("REVIEW_MAX_CATEGORY_QUOTES", defaults.max_category_quotes),
            segment_quote_min_length=get_env_int(
                "REVIEW_SEGMENT_QUOTE_MIN_LENGTH", defaults.segment_quote_min_length
            ),
            max_segment_quotes=get_env_int("REVIEW_MAX_SEGMENT_QUOTES", defaults.max_segment_quotes),
            top_n=get_env_int("REVIEW_TOP_N", defaults.top_n),
            story_min_length=get_env_int("REVIEW_STORY_MIN_LENGTH", defaults.story_min_length),
            story_max_length=get_env_int("REVIEW_STORY_MAX_LENGTH", defaults.story_max_length),
            max_stories=get_env_int("REVIEW_MAX_STORIES", defaults.max_stories),
            very_common_threshold=get_env_float("REVIEW_VERY_COMMON_PCT", defaults.very_common_threshold),
            moderately_common_threshold=get_env_float(
                "REVIEW_MODERATELY_COMMON_PCT", defaults.moderately_common_threshold
            ),
            workers=get_env_int("REVIEW_WORKERS", defaults.workers),
        )


def catalog_path() -> Optional[str]:
    """Path of an external catalog file, if configured."""
    return get_env("REVIEW_CATALOG_PATH")


# Global config instance
_config: Optional[AnalysisConfig] = None


def get_config() -> AnalysisConfig:
    """
    Get the global config instance (singleton pattern).

    Returns:
        Global AnalysisConfig instance
    """
    global _config
    if _config is None:
        _config = AnalysisConfig.from_env()
    return _config


def reset_config():
    """Drop the cached config (tests, reloads)."""
    global _config
    _config = None
