"""
Product Aggregator
===================

Turns classified reviews into per-category statistics for one scope
(a product line, or the members of one segment).

    pain / benefit / transformation -> only categories that were found
    identity / motivation segments  -> the full taxonomy, zeros included

Percentages always use the scope's own review count as denominator.

Usage:
    aggregator = ProductAggregator(catalog)
    analysis = aggregator.analyze_product("Compression", classified_for_product)
"""

import logging
from typing import List, Optional, Sequence, Set, Tuple

from .analysis_config import AnalysisConfig
from .pattern_catalog import PatternCatalog, default_catalog
from .review_models import (
    CategoryStat,
    ClassifiedReview,
    FrequencyTier,
    Layer,
    ProductAnalysis,
    SEGMENT_LAYERS,
    TransformationStory,
    percent,
)

logger = logging.getLogger(__name__)


def truncate(text: str, limit: int) -> str:
    """Cut text to limit characters, marking the cut with '...'."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def rating_stats(classified: Sequence[ClassifiedReview]) -> Tuple[float, float, float]:
    """
    Average rating and 5-star / 1-star percentages.

    Returns:
        (average_rating rounded to 2 dp, five_star_percent, one_star_percent)
    """
    ratings = [c.rating for c in classified if c.rating and c.rating > 0]
    if not ratings:
        return 0.0, 0.0, 0.0
    average = round(sum(ratings) / len(ratings), 2)
    five_star = sum(1 for r in ratings if r == 5)
    one_star = sum(1 for r in ratings if r == 1)
    return average, percent(five_star, len(ratings)), percent(one_star, len(ratings))


class ProductAggregator:
    """
    Counts, percentages, tiers and representative quotes per category.

    Quote selection is a display heuristic with a fixed, deterministic order:
        1. body length inside the configured window
        2. body contains the category's key term
        3. earlier corpus position
    """

    def __init__(
        self,
        catalog: Optional[PatternCatalog] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.catalog = catalog or default_catalog()
        self.config = config or AnalysisConfig()

    def tier(self, percentage: float) -> FrequencyTier:
        if percentage > self.config.very_common_threshold:
            return FrequencyTier.VERY_COMMON
        if percentage >= self.config.moderately_common_threshold:
            return FrequencyTier.MODERATELY_COMMON
        return FrequencyTier.NOT_COMMON

    # =========================================================================
    # QUOTES
    # =========================================================================

    def select_quotes(
        self,
        members: Sequence[ClassifiedReview],
        key_term: str = "",
        used_first: Optional[Set[int]] = None,
    ) -> Tuple[str, ...]:
        """
        Pick up to max_category_quotes quotes from matching reviews.

        Args:
            members: Reviews that matched the category.
            key_term: Term whose literal presence makes a quote preferable.
            used_first: Corpus indices already used as another category's
                first quote. Updated in place with this category's pick.
        """
        cap = self.config.max_category_quotes
        if cap == 0:
            return ()

        lo, hi = self.config.quote_min_length, self.config.quote_max_length
        term = key_term.lower()

        def rank(c: ClassifiedReview):
            body = c.body.strip()
            in_window = lo <= len(body) <= hi
            has_term = bool(term) and term in body.lower()
            return (not in_window, not has_term, c.index)

        ranked = sorted((c for c in members if c.body and c.body.strip()), key=rank)
        if not ranked:
            return ()

        if used_first is not None and ranked[0].index in used_first:
            alternative = next(
                (i for i, c in enumerate(ranked) if c.index not in used_first), None
            )
            if alternative is not None:
                ranked.insert(0, ranked.pop(alternative))

        picked = ranked[:cap]
        if used_first is not None:
            used_first.add(picked[0].index)

        return tuple(truncate(c.body.strip(), hi) for c in picked)

    # =========================================================================
    # CATEGORY STATS
    # =========================================================================

    def category_stats(
        self,
        classified: Sequence[ClassifiedReview],
        layer: Layer,
        denominator: Optional[int] = None,
        include_zero: bool = False,
        used_first: Optional[Set[int]] = None,
    ) -> Tuple[CategoryStat, ...]:
        """
        Stats for every category of a layer within one scope.

        Args:
            classified: The reviews in scope.
            layer: Which layer's categories to count.
            denominator: Scope size; defaults to len(classified).
            include_zero: Keep categories with no match, in catalog order.
                Otherwise zero-count categories are dropped and the rest are
                sorted by count descending (catalog order on ties).
            used_first: First-quote indices to avoid, shared between calls
                that should not repeat a lead quote. A fresh set when omitted.
        """
        total = len(classified) if denominator is None else denominator
        if used_first is None:
            used_first = set()
        stats: List[CategoryStat] = []

        for definition in self.catalog.categories(layer):
            members = [c for c in classified if definition.name in c.tags(layer)]
            count = len(members)
            if count == 0 and not include_zero:
                continue

            percentage = percent(count, total)
            stats.append(CategoryStat(
                name=definition.name,
                label=definition.label,
                count=count,
                percentage=percentage,
                tier=self.tier(percentage),
                quotes=self.select_quotes(members, definition.key_term, used_first),
            ))

        if not include_zero:
            # sort is stable, so equal counts keep catalog order
            stats.sort(key=lambda s: s.count, reverse=True)
        return tuple(stats)

    def segment_stats(self, classified: Sequence[ClassifiedReview]) -> Tuple[CategoryStat, ...]:
        """Every identity then motivation segment, zero counts included."""
        stats: List[CategoryStat] = []
        for layer in SEGMENT_LAYERS:
            stats.extend(self.category_stats(classified, layer, include_zero=True))
        return tuple(stats)

    # =========================================================================
    # STORIES
    # =========================================================================

    def transformation_stories(
        self,
        classified: Sequence[ClassifiedReview],
    ) -> Tuple[TransformationStory, ...]:
        """Longer before/after reviews, in corpus order."""
        stories: List[TransformationStory] = []
        for c in sorted(classified, key=lambda c: c.index):
            if len(stories) >= self.config.max_stories:
                break
            body = c.body.strip() if c.body else ""
            if len(body) < self.config.story_min_length:
                continue
            if not self.catalog.is_story(body):
                continue
            stories.append(TransformationStory(
                review=truncate(body, self.config.story_max_length),
                rating=c.rating,
                date=c.review.date or "N/A",
            ))
        return tuple(stories)

    # =========================================================================
    # PRODUCT
    # =========================================================================

    def analyze_product(
        self,
        product: str,
        classified: Sequence[ClassifiedReview],
    ) -> ProductAnalysis:
        """Full statistics for one product line's reviews."""
        average, five_star, one_star = rating_stats(classified)
        # one lead quote per review across pain, benefits and transformation
        used_first: Set[int] = set()

        analysis = ProductAnalysis(
            product=product,
            total_reviews=len(classified),
            average_rating=average,
            five_star_percent=five_star,
            one_star_percent=one_star,
            pain=self.category_stats(classified, Layer.PAIN, used_first=used_first),
            benefits=self.category_stats(classified, Layer.BENEFIT, used_first=used_first),
            transformation=self.category_stats(classified, Layer.TRANSFORMATION, used_first=used_first),
            segments=self.segment_stats(classified),
            transformation_stories=self.transformation_stories(classified),
        )

        logger.debug(
            f"Product {product}: {analysis.total_reviews} reviews, "
            f"{len(analysis.pain)} pains, {len(analysis.benefits)} benefits, "
            f"{len(analysis.transformation)} transformations"
        )
        return analysis
