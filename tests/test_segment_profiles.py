"""
Tests for two-layer segment profiles.

Usage:
    pytest tests/test_segment_profiles.py -v
"""

from src.reviews.analysis_config import AnalysisConfig
from src.reviews.review_classifier import ReviewClassifier
from src.reviews.review_models import ClassifiedReview, Layer, Review
from src.reviews.segment_profiles import SegmentProfileBuilder


def make_review(body: str, rating: float = 5, product: str = "Product A") -> Review:
    """Helper to create a Review."""
    return Review(handle="", body=body, rating=rating, date="2024-05-01", product=product)


COMFORTABLE = "Very comfortable socks."
NEUTRAL = "Arrived on time."

# 40 reviews for Product A (10 comfortable), 60 neutral for Product B
CORPUS = (
    [make_review(COMFORTABLE, 5, "Product A") for _ in range(10)]
    + [make_review(NEUTRAL, 4, "Product A") for _ in range(30)]
    + [make_review(NEUTRAL, 3, "Product B") for _ in range(60)]
)
PRODUCT_TOTALS = {"Product A": 40, "Product B": 60}


class TestSegmentProfileBuilder:
    """Tests for SegmentProfileBuilder.build()."""

    def setup_method(self):
        self.builder = SegmentProfileBuilder()
        self.classified = ReviewClassifier().classify_all(CORPUS)
        self.profiles = {p.name: p for p in self.builder.build(self.classified, PRODUCT_TOTALS)}

    def test_every_segment_profiled(self):
        assert len(self.profiles) == 17

    def test_motivation_first_sorted_by_size(self):
        ordered = self.builder.build(self.classified, PRODUCT_TOTALS)
        assert [p.layer for p in ordered[:8]] == [Layer.MOTIVATION] * 8
        assert [p.layer for p in ordered[8:]] == [Layer.IDENTITY] * 9
        assert ordered[0].name == "comfort_seeker"
        # zero-size motivation segments keep catalog order
        assert [p.name for p in ordered[1:3]] == ["pain_symptom_relief", "style_conscious"]

    def test_segment_counts(self):
        profile = self.profiles["comfort_seeker"]
        assert profile.label == "Comfort Seeker"
        assert profile.total_reviews == 10
        assert profile.percentage == 10.0
        assert profile.average_rating == 5.0
        assert profile.five_star_percent == 100.0

    def test_by_product_uses_product_total(self):
        by_product = self.profiles["comfort_seeker"].by_product
        assert by_product["Product A"].count == 10
        assert by_product["Product A"].percentage == 25.0
        assert by_product["Product B"].count == 0
        assert by_product["Product B"].percentage == 0.0

    def test_top_categories_within_segment(self):
        profile = self.profiles["comfort_seeker"]
        assert [s.name for s in profile.top_benefits] == ["comfort"]
        assert profile.top_benefits[0].percentage == 100.0
        assert profile.top_pains == ()

    def test_zero_segment_profile(self):
        senior = self.profiles["senior"]
        assert senior.total_reviews == 0
        assert senior.percentage == 0.0
        assert senior.average_rating == 0.0
        assert senior.representative_quotes == ()
        assert senior.top_benefits == ()
        assert senior.top_pains == ()
        assert senior.top_transformations == ()
        assert set(senior.by_product) == {"Product A", "Product B"}

    def test_top_n_limit(self):
        builder = SegmentProfileBuilder(config=AnalysisConfig(top_n=1))
        body = "So comfortable and soft, they stay up and the color is cute."
        classified = ReviewClassifier().classify_all([make_review(body)])
        profile = builder.build_profile(
            builder.catalog.get(Layer.MOTIVATION, "comfort_seeker"), classified, {"Product A": 1},
        )
        assert len(profile.top_benefits) == 1

    def test_to_dict(self):
        data = self.profiles["comfort_seeker"].to_dict()
        assert data["layer"] == "motivation"
        assert data["by_product"]["Product A"] == {"count": 10, "percentage": 25.0}


class TestSegmentQuotes:
    """Tests for SegmentProfileBuilder.pick_quotes()."""

    def setup_method(self):
        self.builder = SegmentProfileBuilder()

    def make(self, body, rating, index):
        return ClassifiedReview(review=make_review(body, rating), index=index)

    def test_rating_then_length_then_position(self):
        long_body = "These socks are the most comfortable pair I own and I wear them daily."
        longer_body = long_body + " Highly recommended to anyone."
        lower_rated = long_body + " Okay."
        members = [
            self.make(lower_rated, 4, 0),
            self.make(long_body, 5, 1),
            self.make(longer_body, 5, 2),
            self.make(long_body, 5, 3),
        ]
        quotes = self.builder.pick_quotes(members)
        assert quotes == [longer_body, long_body, long_body, lower_rated]

    def test_short_bodies_excluded(self):
        members = [self.make("Too short to quote.", 5, 0)]
        assert self.builder.pick_quotes(members) == []

    def test_cap(self):
        body = "x" * 80
        members = [self.make(body, 5, i) for i in range(8)]
        assert len(self.builder.pick_quotes(members)) == 5
