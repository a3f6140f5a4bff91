"""
Review Classifier (Deterministic)
==================================

Tags every review with the categories it matches in each layer of the
pattern catalog. Multi-label: a review can belong to any number of
categories per layer, including none. No LLM, no shared state --
the same text always yields the same tags.

Usage:
    classifier = ReviewClassifier(default_catalog())
    classified = classifier.classify_all(reviews)
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, FrozenSet, List, Optional, Sequence

from .pattern_catalog import PatternCatalog, default_catalog
from .review_models import ClassifiedReview, Layer, Review

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim; None becomes ''."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


class ReviewClassifier:
    """
    Applies a PatternCatalog to review bodies.

    Pure and thread-safe: compiled patterns are read-only, so reviews can be
    classified in any order or in parallel.
    """

    def __init__(self, catalog: Optional[PatternCatalog] = None):
        self.catalog = catalog or default_catalog()

    def match_layer(self, text: str, layer: Layer) -> FrozenSet[str]:
        """Names of every category in a layer whose rules match text."""
        if not text:
            return frozenset()
        return frozenset(
            definition.name
            for definition in self.catalog.categories(layer)
            if definition.matches(text)
        )

    def classify(self, review: Review, index: int = 0) -> ClassifiedReview:
        """Tag one review across all five layers."""
        text = normalize_text(review.body)
        tags: Dict[str, FrozenSet[str]] = {
            layer.value: self.match_layer(text, layer) for layer in Layer
        }
        return ClassifiedReview(review=review, index=index, **tags)

    def classify_all(
        self,
        reviews: Sequence[Review],
        workers: int = 1,
    ) -> List[ClassifiedReview]:
        """
        Classify a corpus, preserving input order.

        Args:
            reviews: Reviews in corpus order.
            workers: Thread count; 1 classifies sequentially.

        Returns:
            One ClassifiedReview per input review, index = input position.
        """
        if workers <= 1 or len(reviews) < 2:
            return [self.classify(r, i) for i, r in enumerate(reviews)]

        logger.debug(f"Classifying {len(reviews)} reviews with {workers} threads")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields results in submission order
            return list(executor.map(self.classify, reviews, range(len(reviews))))
