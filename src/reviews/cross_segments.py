"""
Cross-Segment Analyzer
=======================

Statistics that relate segments to each other and to product lines:

    overlaps          identity x motivation co-occurrence (non-zero pairs only)
    product_affinity  per product, each segment's concentration index
    coverage          unsegmented / multi-segment counts, per-layer coverage

Concentration index (CI):
    CI = (segment count in product / product total)
         / (segment count overall / corpus total)

    CI = 1.0 -> the segment appears in this product at its corpus-wide rate
    CI > 1.0 -> over-indexed, CI < 1.0 -> under-indexed
    Entries whose ratio would divide by zero are omitted, never reported as 0.
"""

import logging
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .pattern_catalog import PatternCatalog, default_catalog
from .product_aggregator import rating_stats
from .review_models import (
    ClassifiedReview,
    CountShare,
    CrossSegmentOverlap,
    Layer,
    LayerCoverage,
    ProductAffinityEntry,
    ProductShare,
    SEGMENT_LAYERS,
    SegmentBreakdown,
    SegmentProfile,
    freeze,
    percent,
)

logger = logging.getLogger(__name__)


class CrossSegmentAnalyzer:
    """Cross-tabulates identity segments, motivation segments and products."""

    def __init__(self, catalog: Optional[PatternCatalog] = None):
        self.catalog = catalog or default_catalog()

    # =========================================================================
    # IDENTITY x MOTIVATION
    # =========================================================================

    def overlaps(self, classified: Sequence[ClassifiedReview]) -> List[CrossSegmentOverlap]:
        """
        Every (identity, motivation) pair with at least one shared review.

        percent_of_identity / percent_of_motivation use each side's own
        total as denominator.

        Returns:
            Pairs sorted by review_count descending, catalog order on ties.
        """
        identity_totals: Counter = Counter()
        motivation_totals: Counter = Counter()
        pair_members: Dict[Tuple[str, str], List[ClassifiedReview]] = {}

        for c in classified:
            identity_totals.update(c.identity)
            motivation_totals.update(c.motivation)
            for identity in c.identity:
                for motivation in c.motivation:
                    pair_members.setdefault((identity, motivation), []).append(c)

        overlaps: List[CrossSegmentOverlap] = []
        for id_def in self.catalog.categories(Layer.IDENTITY):
            for mot_def in self.catalog.categories(Layer.MOTIVATION):
                members = pair_members.get((id_def.name, mot_def.name))
                if not members:
                    continue

                count = len(members)
                product_counts = Counter(c.product for c in members)
                by_product = {
                    product: ProductShare(count=n, percentage=percent(n, count))
                    for product, n in sorted(product_counts.items())
                }
                average, _, _ = rating_stats(members)

                overlaps.append(CrossSegmentOverlap(
                    identity=id_def.name,
                    motivation=mot_def.name,
                    review_count=count,
                    percent_of_identity=percent(count, identity_totals[id_def.name]),
                    percent_of_motivation=percent(count, motivation_totals[mot_def.name]),
                    average_rating=average,
                    by_product=freeze(by_product),
                ))

        overlaps.sort(key=lambda o: o.review_count, reverse=True)
        return overlaps

    # =========================================================================
    # PRODUCT AFFINITY
    # =========================================================================

    def product_affinity(
        self,
        classified: Sequence[ClassifiedReview],
        profiles: Sequence[SegmentProfile],
        product_totals: Mapping[str, int],
    ) -> Dict[str, Tuple[ProductAffinityEntry, ...]]:
        """
        Concentration index of every present segment in every product line.

        Products with zero reviews are skipped entirely. Within a product,
        entries are sorted by share_of_product descending, profile order on
        ties.
        """
        corpus_total = len(classified)
        affinity: Dict[str, Tuple[ProductAffinityEntry, ...]] = {}

        for product, product_total in product_totals.items():
            if product_total == 0:
                continue

            entries: List[ProductAffinityEntry] = []
            for profile in profiles:
                share = profile.by_product.get(product)
                in_product = share.count if share else 0
                if in_product == 0 or profile.total_reviews == 0 or corpus_total == 0:
                    continue

                product_rate = in_product / product_total
                overall_rate = profile.total_reviews / corpus_total
                entries.append(ProductAffinityEntry(
                    segment=profile.name,
                    layer=profile.layer,
                    count=in_product,
                    share_of_product=percent(in_product, product_total),
                    concentration_index=round(product_rate / overall_rate, 2),
                ))

            entries.sort(key=lambda e: e.share_of_product, reverse=True)
            affinity[product] = tuple(entries)

        return affinity

    # =========================================================================
    # COVERAGE
    # =========================================================================

    def coverage(
        self,
        classified: Sequence[ClassifiedReview],
    ) -> Tuple[CountShare, CountShare, Tuple[LayerCoverage, ...]]:
        """
        Corpus-wide segment coverage.

        k = distinct segment names matched across both layers combined.
        unsegmented counts k == 0, multi_segment counts k >= 2.

        Returns:
            (unsegmented, multi_segment, per-layer coverage)
        """
        total = len(classified)
        unsegmented = sum(1 for c in classified if not c.segments)
        multi = sum(1 for c in classified if len(c.segments) >= 2)

        per_layer = []
        for layer in SEGMENT_LAYERS:
            segmented = sum(1 for c in classified if c.tags(layer))
            per_layer.append(LayerCoverage(
                layer=layer,
                segmented=segmented,
                unsegmented=total - segmented,
            ))

        return (
            CountShare(count=unsegmented, percentage=percent(unsegmented, total)),
            CountShare(count=multi, percentage=percent(multi, total)),
            tuple(per_layer),
        )

    # =========================================================================
    # ASSEMBLY
    # =========================================================================

    def build_breakdown(
        self,
        classified: Sequence[ClassifiedReview],
        profiles: Sequence[SegmentProfile],
        product_totals: Mapping[str, int],
    ) -> SegmentBreakdown:
        """Assemble the immutable SegmentBreakdown."""
        unsegmented, multi, per_layer = self.coverage(classified)
        overlaps = self.overlaps(classified)
        affinity = self.product_affinity(classified, profiles, product_totals)

        logger.info(
            f"Segment breakdown: {len(profiles)} segments, "
            f"{len(overlaps)} overlapping pairs, "
            f"{unsegmented.count} unsegmented, {multi.count} multi-segment"
        )

        return SegmentBreakdown(
            total_reviews=len(classified),
            segments=tuple(profiles),
            cross_segment_overlap=tuple(overlaps),
            product_affinity=freeze(affinity),
            multi_segment=multi,
            unsegmented=unsegmented,
            layer_coverage=per_layer,
        )
