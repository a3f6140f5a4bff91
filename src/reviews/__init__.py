"""
Review Analysis & Segmentation Engine
======================================

Deterministic statistics from customer review text. No ML, no LLM:
the same corpus always produces the same numbers.

Modules:
    review_models      - Data models (Review, CategoryStat, SegmentProfile, ...)
    pattern_catalog    - Versioned taxonomy of pain/benefit/transformation/segment rules
    review_classifier  - Multi-label tagging of each review
    product_aggregator - Per-product category stats, quotes, stories
    segment_profiles   - Two-layer (identity / motivation) segment profiles
    cross_segments     - Identity x motivation overlap, product affinity, coverage
    review_records     - Raw row normalisation with malformed-record skipping
    analysis_config    - Tunable thresholds
"""

from .review_models import (
    Review,
    ClassifiedReview,
    CategoryStat,
    ProductAnalysis,
    SegmentProfile,
    CrossSegmentOverlap,
    ProductAffinityEntry,
    SegmentBreakdown,
    FullAnalysis,
    Layer,
    FrequencyTier,
    ReviewAnalysisError,
    EmptyCorpusError,
    AnalysisCancelled,
    CatalogError,
)
from .pattern_catalog import PatternCatalog, CategoryDefinition, CATALOG_VERSION, default_catalog, load_catalog
from .review_classifier import ReviewClassifier
from .product_aggregator import ProductAggregator
from .segment_profiles import SegmentProfileBuilder
from .cross_segments import CrossSegmentAnalyzer
from .review_records import normalize_records, NormalizedRecords
from .analysis_config import AnalysisConfig, get_config
