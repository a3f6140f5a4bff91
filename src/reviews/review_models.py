"""
Review Analysis Data Models
============================

Structured inputs and outputs of the review analysis engine.
Every result object is frozen: once an analysis run publishes it,
nothing downstream may change it.

The to_dict() methods produce the JSON shape consumed by dashboards
and prompt builders.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple, Union


class ReviewAnalysisError(Exception):
    """Base error for the review analysis engine."""
    pass


class EmptyCorpusError(ReviewAnalysisError):
    """Raised when an analysis is requested on zero usable reviews."""
    pass


class AnalysisCancelled(ReviewAnalysisError):
    """Raised when the caller aborts a run between stages."""
    pass


class CatalogError(ReviewAnalysisError):
    """Raised when a pattern catalog definition is malformed."""
    pass


class Layer(str, Enum):
    """Dimension a category belongs to."""
    PAIN = "pain"
    BENEFIT = "benefit"
    TRANSFORMATION = "transformation"
    MOTIVATION = "motivation"
    IDENTITY = "identity"

    @property
    def is_segment(self) -> bool:
        return self in (Layer.MOTIVATION, Layer.IDENTITY)


SEGMENT_LAYERS: Tuple[Layer, ...] = (Layer.IDENTITY, Layer.MOTIVATION)
SIGNAL_LAYERS: Tuple[Layer, ...] = (Layer.PAIN, Layer.BENEFIT, Layer.TRANSFORMATION)


class FrequencyTier(str, Enum):
    """How common a category is within its scope."""
    VERY_COMMON = "Very Common"
    MODERATELY_COMMON = "Moderately Common"
    NOT_COMMON = "Not Common"


def freeze(mapping: Dict) -> Mapping:
    """Wrap a dict in a read-only view."""
    return MappingProxyType(dict(mapping))


def percent(count: int, total: int, digits: int = 1) -> float:
    """count / total as a rounded percentage, 0.0 when total is zero."""
    if total <= 0:
        return 0.0
    return round(count / total * 100, digits)


# =============================================================================
# INPUT
# =============================================================================

@dataclass(frozen=True)
class Review:
    """A single parsed customer review."""
    handle: str
    body: str
    rating: Union[int, float]
    date: str
    product: str


@dataclass(frozen=True)
class ClassifiedReview:
    """A review plus the category names it matched in every layer."""
    review: Review
    index: int                  # position in the corpus, used for stable tie-breaks
    pain: FrozenSet[str] = frozenset()
    benefit: FrozenSet[str] = frozenset()
    transformation: FrozenSet[str] = frozenset()
    motivation: FrozenSet[str] = frozenset()
    identity: FrozenSet[str] = frozenset()

    def tags(self, layer: Layer) -> FrozenSet[str]:
        return getattr(self, layer.value)

    @property
    def segments(self) -> FrozenSet[str]:
        """Distinct segment names across both segment layers."""
        return self.identity | self.motivation

    @property
    def body(self) -> str:
        return self.review.body

    @property
    def rating(self) -> Union[int, float]:
        return self.review.rating

    @property
    def product(self) -> str:
        return self.review.product


# =============================================================================
# PER-CATEGORY / PER-PRODUCT OUTPUT
# =============================================================================

@dataclass(frozen=True)
class CategoryStat:
    """Count, share and sample quotes for one category within a scope."""
    name: str
    label: str
    count: int
    percentage: float
    tier: FrequencyTier
    quotes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "label": self.label,
            "count": self.count,
            "percentage": self.percentage,
            "tier": self.tier.value,
            "quotes": list(self.quotes),
        }


@dataclass(frozen=True)
class TransformationStory:
    """A longer before/after review excerpt."""
    review: str
    rating: Union[int, float]
    date: str

    def to_dict(self) -> Dict:
        return {"review": self.review, "rating": self.rating, "date": self.date}


@dataclass(frozen=True)
class ProductAnalysis:
    """Statistics for one product line."""
    product: str
    total_reviews: int
    average_rating: float
    five_star_percent: float
    one_star_percent: float
    pain: Tuple[CategoryStat, ...]
    benefits: Tuple[CategoryStat, ...]
    transformation: Tuple[CategoryStat, ...]
    segments: Tuple[CategoryStat, ...]
    transformation_stories: Tuple[TransformationStory, ...] = ()

    def stat(self, layer: Layer, name: str) -> Optional[CategoryStat]:
        """Look up one category's stat, None when it was not found."""
        stats = {
            Layer.PAIN: self.pain,
            Layer.BENEFIT: self.benefits,
            Layer.TRANSFORMATION: self.transformation,
        }.get(layer, self.segments)
        for s in stats:
            if s.name == name:
                return s
        return None

    def to_dict(self) -> Dict:
        return {
            "product": self.product,
            "total_reviews": self.total_reviews,
            "average_rating": self.average_rating,
            "five_star_percent": self.five_star_percent,
            "one_star_percent": self.one_star_percent,
            "pain": [s.to_dict() for s in self.pain],
            "benefits": [s.to_dict() for s in self.benefits],
            "transformation": [s.to_dict() for s in self.transformation],
            "segments": [s.to_dict() for s in self.segments],
            "transformation_stories": [s.to_dict() for s in self.transformation_stories],
        }


# =============================================================================
# SEGMENT MODEL
# =============================================================================

@dataclass(frozen=True)
class ProductShare:
    """A count and the percentage it represents within some scope."""
    count: int
    percentage: float

    def to_dict(self) -> Dict:
        return {"count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class CountShare:
    """Corpus-wide count and percentage (unsegmented, multi-segment)."""
    count: int
    percentage: float

    def to_dict(self) -> Dict:
        return {"count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class SegmentProfile:
    """Corpus-wide profile of one identity or motivation segment."""
    name: str
    label: str
    layer: Layer
    total_reviews: int
    percentage: float
    average_rating: float
    five_star_percent: float
    by_product: Mapping[str, ProductShare] = field(default_factory=lambda: freeze({}))
    top_benefits: Tuple[CategoryStat, ...] = ()
    top_pains: Tuple[CategoryStat, ...] = ()
    top_transformations: Tuple[CategoryStat, ...] = ()
    representative_quotes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "label": self.label,
            "layer": self.layer.value,
            "total_reviews": self.total_reviews,
            "percentage": self.percentage,
            "average_rating": self.average_rating,
            "five_star_percent": self.five_star_percent,
            "by_product": {p: s.to_dict() for p, s in self.by_product.items()},
            "top_benefits": [s.to_dict() for s in self.top_benefits],
            "top_pains": [s.to_dict() for s in self.top_pains],
            "top_transformations": [s.to_dict() for s in self.top_transformations],
            "representative_quotes": list(self.representative_quotes),
        }


@dataclass(frozen=True)
class CrossSegmentOverlap:
    """Reviews that match one identity segment and one motivation segment."""
    identity: str
    motivation: str
    review_count: int
    percent_of_identity: float      # share of the identity segment
    percent_of_motivation: float    # share of the motivation segment
    average_rating: float
    by_product: Mapping[str, ProductShare] = field(default_factory=lambda: freeze({}))

    def to_dict(self) -> Dict:
        return {
            "identity": self.identity,
            "motivation": self.motivation,
            "review_count": self.review_count,
            "percent_of_identity": self.percent_of_identity,
            "percent_of_motivation": self.percent_of_motivation,
            "average_rating": self.average_rating,
            "by_product": {p: s.to_dict() for p, s in self.by_product.items()},
        }


@dataclass(frozen=True)
class ProductAffinityEntry:
    """How strongly one segment is represented in one product line."""
    segment: str
    layer: Layer
    count: int
    share_of_product: float
    concentration_index: float      # 1.0 = same rate as the whole corpus

    def to_dict(self) -> Dict:
        return {
            "segment": self.segment,
            "layer": self.layer.value,
            "count": self.count,
            "share_of_product": self.share_of_product,
            "concentration_index": self.concentration_index,
        }


@dataclass(frozen=True)
class LayerCoverage:
    """Reviews with and without a match in one segment layer."""
    layer: Layer
    segmented: int
    unsegmented: int

    def to_dict(self) -> Dict:
        return {
            "layer": self.layer.value,
            "segmented": self.segmented,
            "unsegmented": self.unsegmented,
        }


@dataclass(frozen=True)
class SegmentBreakdown:
    """The complete two-layer segment model for a corpus."""
    total_reviews: int
    segments: Tuple[SegmentProfile, ...]
    cross_segment_overlap: Tuple[CrossSegmentOverlap, ...]
    product_affinity: Mapping[str, Tuple[ProductAffinityEntry, ...]]
    multi_segment: CountShare
    unsegmented: CountShare
    layer_coverage: Tuple[LayerCoverage, ...] = ()

    def segment(self, name: str) -> Optional[SegmentProfile]:
        for profile in self.segments:
            if profile.name == name:
                return profile
        return None

    def overlap(self, identity: str, motivation: str) -> Optional[CrossSegmentOverlap]:
        for entry in self.cross_segment_overlap:
            if entry.identity == identity and entry.motivation == motivation:
                return entry
        return None

    def to_dict(self) -> Dict:
        return {
            "total_reviews": self.total_reviews,
            "segments": [s.to_dict() for s in self.segments],
            "cross_segment_overlap": [o.to_dict() for o in self.cross_segment_overlap],
            "product_affinity": {
                product: [e.to_dict() for e in entries]
                for product, entries in self.product_affinity.items()
            },
            "multi_segment": self.multi_segment.to_dict(),
            "unsegmented": self.unsegmented.to_dict(),
            "layer_coverage": [c.to_dict() for c in self.layer_coverage],
        }


@dataclass(frozen=True)
class FullAnalysis:
    """Everything one analysis run produces."""
    total_reviews: int
    breakdown: Mapping[str, int]
    products: Mapping[str, ProductAnalysis]
    segment_breakdown: SegmentBreakdown
    catalog_version: str
    skipped_records: int = 0

    @property
    def product_lines(self) -> List[str]:
        return list(self.breakdown.keys())

    def to_dict(self) -> Dict:
        return {
            "total_reviews": self.total_reviews,
            "breakdown": dict(self.breakdown),
            "products": {p: a.to_dict() for p, a in self.products.items()},
            "segment_breakdown": self.segment_breakdown.to_dict(),
            "catalog_version": self.catalog_version,
            "skipped_records": self.skipped_records,
        }
