"""
Segment Profile Builder
========================

Builds one SegmentProfile per identity and motivation segment across the
whole corpus. Segments with no members still get an all-zero profile, so
charts keep a stable category axis from one dataset to the next.

A segment's top benefits/pains/transformations are computed on the
segment's own members only, with the segment size as denominator.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .analysis_config import AnalysisConfig
from .pattern_catalog import CategoryDefinition, PatternCatalog, default_catalog
from .product_aggregator import ProductAggregator, rating_stats, truncate
from .review_models import (
    ClassifiedReview,
    Layer,
    ProductShare,
    SegmentProfile,
    freeze,
    percent,
)

logger = logging.getLogger(__name__)


class SegmentProfileBuilder:
    """Profiles every segment of the catalog from a classified corpus."""

    def __init__(
        self,
        catalog: Optional[PatternCatalog] = None,
        aggregator: Optional[ProductAggregator] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.catalog = catalog or default_catalog()
        self.config = config or AnalysisConfig()
        self.aggregator = aggregator or ProductAggregator(self.catalog, self.config)

    def pick_quotes(self, members: Sequence[ClassifiedReview]) -> List[str]:
        """
        Representative quotes for a segment.

        Longer bodies from higher-rated reviews first; corpus order breaks
        the remaining ties.
        """
        candidates = [
            c for c in members
            if c.body and len(c.body.strip()) >= self.config.segment_quote_min_length
        ]
        candidates.sort(key=lambda c: (-(c.rating or 0), -len(c.body.strip()), c.index))
        return [
            truncate(c.body.strip(), self.config.quote_max_length)
            for c in candidates[: self.config.max_segment_quotes]
        ]

    def build_profile(
        self,
        definition: CategoryDefinition,
        classified: Sequence[ClassifiedReview],
        product_totals: Mapping[str, int],
    ) -> SegmentProfile:
        """Profile a single segment."""
        layer = definition.layer
        members = [c for c in classified if definition.name in c.tags(layer)]
        total = len(members)

        product_counts: Dict[str, int] = {product: 0 for product in product_totals}
        for c in members:
            product_counts[c.product] = product_counts.get(c.product, 0) + 1

        by_product = {
            product: ProductShare(
                count=count,
                percentage=percent(count, product_totals.get(product, 0)),
            )
            for product, count in product_counts.items()
        }

        average, five_star, _ = rating_stats(members)
        top_n = self.config.top_n

        return SegmentProfile(
            name=definition.name,
            label=definition.label,
            layer=layer,
            total_reviews=total,
            percentage=percent(total, len(classified)),
            average_rating=average,
            five_star_percent=five_star,
            by_product=freeze(by_product),
            top_benefits=self.aggregator.category_stats(members, Layer.BENEFIT)[:top_n],
            top_pains=self.aggregator.category_stats(members, Layer.PAIN)[:top_n],
            top_transformations=self.aggregator.category_stats(members, Layer.TRANSFORMATION)[:top_n],
            representative_quotes=tuple(self.pick_quotes(members)),
        )

    def build(
        self,
        classified: Sequence[ClassifiedReview],
        product_totals: Mapping[str, int],
    ) -> List[SegmentProfile]:
        """
        Profiles for every catalog segment.

        Args:
            classified: The full classified corpus.
            product_totals: Review count per product line, in output order.

        Returns:
            Motivation profiles first, then identity; within a layer by
            total_reviews descending, catalog order on ties.
        """
        profiles: List[SegmentProfile] = []
        for layer in (Layer.MOTIVATION, Layer.IDENTITY):
            layer_profiles = [
                self.build_profile(definition, classified, product_totals)
                for definition in self.catalog.categories(layer)
            ]
            layer_profiles.sort(key=lambda p: p.total_reviews, reverse=True)
            profiles.extend(layer_profiles)

        empty = [p.name for p in profiles if p.total_reviews == 0]
        if empty:
            logger.debug(f"{len(empty)} segments without members: {', '.join(empty)}")

        return profiles
