"""
Tests for raw review row normalisation.

Usage:
    pytest tests/test_review_records.py -v
"""

from src.reviews.review_models import Review
from src.reviews.review_records import normalize_record, normalize_records, parse_rating
from src.reviews.pattern_catalog import default_catalog


def make_record(**overrides) -> dict:
    """Helper to create a raw review row."""
    record = {
        "handle": "knee-high-compression-socks",
        "review": "Very comfortable socks.",
        "rating": "5",
        "date": "2024-02-10",
    }
    record.update(overrides)
    return record


class TestParseRating:

    def test_valid(self):
        assert parse_rating("5") == 5
        assert parse_rating(4) == 4
        assert parse_rating(" 3 ") == 3
        assert parse_rating("4.5") == 4.5
        assert parse_rating(5.0) == 5
        assert isinstance(parse_rating("5.0"), int)

    def test_invalid(self):
        for value in (None, "", "abc", 0, 6, "-1", True, [5]):
            assert parse_rating(value) is None


class TestNormalizeRecord:
    """Tests for normalize_record()."""

    def setup_method(self):
        self.catalog = default_catalog()

    def test_product_from_handle(self):
        review = normalize_record(make_record(), self.catalog)
        assert isinstance(review, Review)
        assert review.product == "Compression"
        assert review.rating == 5
        assert review.body == "Very comfortable socks."
        assert review.date == "2024-02-10"

    def test_explicit_product_wins(self):
        review = normalize_record(make_record(product="Product A"), self.catalog)
        assert review.product == "Product A"

    def test_unknown_handle_is_other(self):
        review = normalize_record(make_record(handle="gift-card"), self.catalog)
        assert review.product == "Other"

    def test_body_field_alias(self):
        record = make_record(body="Great fit.")
        del record["review"]
        assert normalize_record(record, self.catalog).body == "Great fit."

    def test_missing_body_kept_empty(self):
        record = make_record()
        del record["review"]
        review = normalize_record(record, self.catalog)
        assert review.body == ""

    def test_headers_matched_case_insensitively(self):
        record = {"Handle": "easystretch-blue", "Review": "So comfortable", "Rating": "5", "Date": "2024-01-01"}
        review = normalize_record(record, self.catalog)
        assert isinstance(review, Review)
        assert review.product == "EasyStretch"
        assert review.body == "So comfortable"
        assert review.rating == 5
        assert review.date == "2024-01-01"

    def test_created_at_date_fallback(self):
        record = make_record(created_at="2024-01-01")
        del record["date"]
        assert normalize_record(record, self.catalog).date == "2024-01-01"

    def test_date_preferred_over_created_at(self):
        record = make_record(created_at="2023-12-31")
        assert normalize_record(record, self.catalog).date == "2024-02-10"

    def test_skip_reasons(self):
        assert normalize_record(make_record(rating=None), self.catalog) == "missing_rating"
        assert normalize_record(make_record(rating="  "), self.catalog) == "missing_rating"
        assert normalize_record(make_record(rating="great"), self.catalog) == "invalid_rating"
        assert normalize_record(make_record(rating=7), self.catalog) == "invalid_rating"
        assert normalize_record(make_record(handle=""), self.catalog) == "missing_product"
        assert normalize_record(["not", "a", "dict"], self.catalog) == "not_a_record"


class TestNormalizeRecords:
    """Tests for normalize_records()."""

    def test_skips_and_counts(self):
        records = [
            make_record(),
            make_record(rating="oops"),
            make_record(handle="womens-easystretch"),
            make_record(rating=None),
            make_record(rating=None, review=None),
            "garbage",
        ]
        result = normalize_records(records)

        assert [r.product for r in result.reviews] == ["Compression", "EasyStretch"]
        assert result.skipped == 4
        assert result.total_records == 6
        assert result.skip_reasons == {
            "invalid_rating": 1,
            "missing_rating": 2,
            "not_a_record": 1,
        }

    def test_capitalised_export_headers(self):
        result = normalize_records([
            {"Handle": "easystretch-blue", "Review": "So comfortable", "Rating": "5"},
        ])
        assert result.skipped == 0
        assert len(result.reviews) == 1

    def test_all_valid(self):
        result = normalize_records([make_record(), make_record()])
        assert len(result.reviews) == 2
        assert result.skipped == 0
        assert result.skip_reasons == {}
