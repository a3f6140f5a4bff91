"""
Tests for per-product aggregation.

- Frequency tiers and percentage rounding
- Category stats ordering (found-only vs full taxonomy)
- Quote selection order, truncation and first-quote de-duplication
- Transformation stories
- Rating statistics

Usage:
    pytest tests/test_product_aggregator.py -v
"""

from src.reviews.analysis_config import AnalysisConfig
from src.reviews.product_aggregator import ProductAggregator, rating_stats, truncate
from src.reviews.review_classifier import ReviewClassifier
from src.reviews.review_models import ClassifiedReview, FrequencyTier, Layer, Review


# ============================================================================
# TEST DATA
# ============================================================================

def make_review(body: str, rating: float = 5, product: str = "Compression", date: str = "2024-03-01") -> Review:
    """Helper to create a Review."""
    return Review(handle="knee-high-compression", body=body, rating=rating, date=date, product=product)


def make_classified(body: str, index: int, rating: float = 5) -> ClassifiedReview:
    """A ClassifiedReview with no tags, for quote and story tests."""
    return ClassifiedReview(review=make_review(body, rating), index=index)


CLASSIFIER = ReviewClassifier()


def classify(bodies, ratings=None):
    ratings = ratings or [5] * len(bodies)
    return CLASSIFIER.classify_all([make_review(b, r) for b, r in zip(bodies, ratings)])


# ============================================================================
# TIERS / HELPERS
# ============================================================================

class TestTiers:

    def setup_method(self):
        self.aggregator = ProductAggregator()

    def test_very_common_is_strictly_above_five(self):
        assert self.aggregator.tier(25.0) == FrequencyTier.VERY_COMMON
        assert self.aggregator.tier(5.1) == FrequencyTier.VERY_COMMON
        assert self.aggregator.tier(5.0) == FrequencyTier.MODERATELY_COMMON

    def test_moderately_common_from_two(self):
        assert self.aggregator.tier(2.0) == FrequencyTier.MODERATELY_COMMON
        assert self.aggregator.tier(1.9) == FrequencyTier.NOT_COMMON
        assert self.aggregator.tier(0.0) == FrequencyTier.NOT_COMMON

    def test_custom_thresholds(self):
        aggregator = ProductAggregator(config=AnalysisConfig(
            very_common_threshold=20.0, moderately_common_threshold=10.0,
        ))
        assert aggregator.tier(15.0) == FrequencyTier.MODERATELY_COMMON


class TestHelpers:

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("x" * 12, 10) == "x" * 10 + "..."

    def test_rating_stats(self):
        classified = classify(["a", "b", "c", "d"], [5, 5, 1, 4])
        assert rating_stats(classified) == (3.75, 50.0, 25.0)

    def test_rating_stats_empty(self):
        assert rating_stats([]) == (0.0, 0.0, 0.0)


# ============================================================================
# CATEGORY STATS
# ============================================================================

class TestCategoryStats:
    """Tests for ProductAggregator.category_stats()."""

    def setup_method(self):
        self.aggregator = ProductAggregator()

    def test_count_and_percentage(self):
        bodies = ["Very comfortable socks."] * 10 + ["Arrived on time."] * 30
        stats = self.aggregator.category_stats(classify(bodies), Layer.BENEFIT)

        assert len(stats) == 1
        comfort = stats[0]
        assert comfort.name == "comfort"
        assert comfort.count == 10
        assert comfort.percentage == 25.0
        assert comfort.tier == FrequencyTier.VERY_COMMON

    def test_percentage_rounded_to_one_decimal(self):
        bodies = ["Very comfortable socks."] + ["Arrived on time."] * 2
        stats = self.aggregator.category_stats(classify(bodies), Layer.BENEFIT)
        assert stats[0].percentage == 33.3

    def test_zero_categories_omitted_and_sorted_by_count(self):
        bodies = [
            "My legs ache.",
            "My legs ache again.",
            "They are too tight.",
        ]
        stats = self.aggregator.category_stats(classify(bodies), Layer.PAIN)
        assert [(s.name, s.count) for s in stats] == [("pain", 2), ("tightness", 1)]

    def test_ties_keep_catalog_order(self):
        stats = self.aggregator.category_stats(classify(["Swollen and tight."]), Layer.PAIN)
        assert [s.name for s in stats] == ["swelling", "tightness"]

    def test_include_zero_keeps_full_axis(self):
        stats = self.aggregator.category_stats(
            classify(["Arrived on time."]), Layer.IDENTITY, include_zero=True,
        )
        assert len(stats) == 9
        assert stats[0].name == "healthcare_worker"
        assert all(s.count == 0 and s.percentage == 0.0 for s in stats)
        assert all(s.tier == FrequencyTier.NOT_COMMON for s in stats)

    def test_explicit_denominator(self):
        stats = self.aggregator.category_stats(
            classify(["Very comfortable socks."]), Layer.BENEFIT, denominator=4,
        )
        assert stats[0].percentage == 25.0

    def test_segment_stats_identity_then_motivation(self):
        stats = self.aggregator.segment_stats(classify(["Very comfortable socks."]))
        assert len(stats) == 17
        assert stats[0].name == "healthcare_worker"
        assert stats[9].name == "comfort_seeker"
        assert stats[9].count == 1


# ============================================================================
# QUOTES
# ============================================================================

IN_WINDOW_NO_TERM = "These socks are soft and gentle and feel lovely on my tired feet all day long."
IN_WINDOW_WITH_TERM = "The comfort level of these socks is far better than anything else I have owned."
SHORT = "Comfy."


class TestQuoteSelection:
    """Tests for ProductAggregator.select_quotes()."""

    def setup_method(self):
        self.aggregator = ProductAggregator()
        self.members = [
            make_classified(SHORT, 0),
            make_classified(IN_WINDOW_NO_TERM, 1),
            make_classified(IN_WINDOW_WITH_TERM, 2),
        ]

    def test_window_then_key_term_then_position(self):
        quotes = self.aggregator.select_quotes(self.members, key_term="comfort")
        assert quotes == (IN_WINDOW_WITH_TERM, IN_WINDOW_NO_TERM, SHORT)

    def test_position_breaks_ties(self):
        quotes = self.aggregator.select_quotes(self.members, key_term="")
        assert quotes == (IN_WINDOW_NO_TERM, IN_WINDOW_WITH_TERM, SHORT)

    def test_cap(self):
        members = [make_classified(f"{IN_WINDOW_NO_TERM} #{i}", i) for i in range(6)]
        assert len(self.aggregator.select_quotes(members)) == 3

    def test_configured_cap(self):
        aggregator = ProductAggregator(config=AnalysisConfig(max_category_quotes=1))
        assert aggregator.select_quotes(self.members, key_term="comfort") == (IN_WINDOW_WITH_TERM,)

    def test_long_quotes_truncated(self):
        long_body = "comfort " * 60
        quotes = self.aggregator.select_quotes([make_classified(long_body, 0)], key_term="comfort")
        assert len(quotes[0]) == 303
        assert quotes[0].endswith("...")

    def test_empty_bodies_never_quoted(self):
        members = [make_classified("", 0), make_classified("   ", 1)]
        assert self.aggregator.select_quotes(members) == ()

    def test_used_first_quote_is_demoted(self):
        used = {2}
        quotes = self.aggregator.select_quotes(self.members, key_term="comfort", used_first=used)
        assert quotes[0] == IN_WINDOW_NO_TERM
        assert IN_WINDOW_WITH_TERM in quotes
        assert used == {1, 2}

    def test_used_first_kept_when_no_alternative(self):
        used = {0}
        quotes = self.aggregator.select_quotes([self.members[0]], used_first=used)
        assert quotes == (SHORT,)

    def test_deterministic(self):
        first = self.aggregator.select_quotes(self.members, key_term="comfort")
        second = self.aggregator.select_quotes(list(reversed(self.members)), key_term="comfort")
        assert first == second


# ============================================================================
# STORIES
# ============================================================================

STORY = (
    "I used to dread putting on socks every morning because of the swelling, "
    "but now I can wear these all day without thinking about it at all."
)


class TestTransformationStories:
    """Tests for ProductAggregator.transformation_stories()."""

    def setup_method(self):
        self.aggregator = ProductAggregator()

    def test_long_story_selected(self):
        stories = self.aggregator.transformation_stories([make_classified(STORY, 0, rating=5)])
        assert len(stories) == 1
        assert stories[0].review == STORY
        assert stories[0].rating == 5
        assert stories[0].date == "2024-03-01"

    def test_short_or_plain_reviews_skipped(self):
        members = [
            make_classified("I used to hate socks.", 0),
            make_classified("x" * 150, 1),
        ]
        assert self.aggregator.transformation_stories(members) == ()

    def test_missing_date(self):
        c = ClassifiedReview(review=Review("h", STORY, 4, "", "Compression"), index=0)
        assert self.aggregator.transformation_stories([c])[0].date == "N/A"

    def test_corpus_order_and_cap(self):
        aggregator = ProductAggregator(config=AnalysisConfig(max_stories=2))
        members = [make_classified(f"{STORY} ({i})", i) for i in (3, 1, 2)]
        stories = aggregator.transformation_stories(members)
        assert [s.review for s in stories] == [f"{STORY} (1)", f"{STORY} (2)"]

    def test_truncated(self):
        aggregator = ProductAggregator(config=AnalysisConfig(story_max_length=120))
        stories = aggregator.transformation_stories([make_classified(STORY, 0)])
        assert stories[0].review == STORY[:120] + "..."


# ============================================================================
# PRODUCT
# ============================================================================

class TestAnalyzeProduct:
    """Tests for ProductAggregator.analyze_product()."""

    def setup_method(self):
        self.aggregator = ProductAggregator()

    def test_full_product(self):
        classified = classify(
            ["Very comfortable socks.", "My legs ache.", "", "Arrived on time."],
            [5, 1, 4, 5],
        )
        analysis = self.aggregator.analyze_product("Compression", classified)

        assert analysis.product == "Compression"
        assert analysis.total_reviews == 4
        assert analysis.average_rating == 3.75
        assert analysis.five_star_percent == 50.0
        assert analysis.one_star_percent == 25.0
        assert analysis.stat(Layer.BENEFIT, "comfort").percentage == 25.0
        assert analysis.stat(Layer.PAIN, "pain").count == 1
        assert analysis.stat(Layer.PAIN, "swelling") is None
        assert len(analysis.segments) == 17
        assert analysis.stat(Layer.MOTIVATION, "comfort_seeker").count == 1

    def test_lead_quote_not_reused_across_layers(self):
        first = "These socks are comfortable but a little tight around the calf after a long day."
        second = "Comfortable enough to wear all shift, though the top band feels tight on my calves."
        classified = classify([first, second])

        analysis = self.aggregator.analyze_product("Compression", classified)
        assert analysis.stat(Layer.PAIN, "tightness").quotes[0] == first
        assert analysis.stat(Layer.BENEFIT, "comfort").quotes[0] == second

        # a standalone call starts from an empty set
        alone = self.aggregator.category_stats(classified, Layer.BENEFIT)
        assert alone[0].name == "comfort"
        assert alone[0].quotes[0] == first

    def test_to_dict_shape(self):
        data = self.aggregator.analyze_product("Compression", classify(["Very comfortable socks."])).to_dict()
        assert set(data) == {
            "product", "total_reviews", "average_rating", "five_star_percent",
            "one_star_percent", "pain", "benefits", "transformation", "segments",
            "transformation_stories",
        }
        assert data["benefits"][0]["tier"] == "Very Common"
