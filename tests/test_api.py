"""
Tests for the review analysis HTTP API.

Usage:
    pytest tests/test_api.py -v
"""

from fastapi.testclient import TestClient

from src.api.main import app
from src.reviews.pattern_catalog import CATALOG_VERSION


def make_record(review: str, handle: str = "knee-high-compression", rating=5) -> dict:
    """Helper to create a request row."""
    return {"handle": handle, "review": review, "rating": rating, "date": "2024-01-15"}


class TestHealth:

    def setup_method(self):
        self.client = TestClient(app)

    def test_health(self):
        response = self.client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["catalog_version"] == CATALOG_VERSION


class TestReviewRoutes:
    """Tests for /api/reviews/*."""

    def setup_method(self):
        self.client = TestClient(app)

    def test_catalog(self):
        response = self.client.get("/api/reviews/catalog")
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == CATALOG_VERSION
        assert len(data["categories"]) == 48

    def test_analyze(self):
        response = self.client.post("/api/reviews/analyze", json={"reviews": [
            make_record("I am a nurse and my legs ache after every shift."),
            make_record("Very comfortable socks.", handle="womens-easystretch", rating="4"),
            make_record("Arrived on time.", rating="not a rating"),
        ]})
        assert response.status_code == 200

        data = response.json()
        assert data["total_reviews"] == 2
        assert data["skipped_records"] == 1
        assert data["breakdown"] == {"EasyStretch": 1, "Compression": 1}
        assert data["catalog_version"] == CATALOG_VERSION

        comfort = data["products"]["EasyStretch"]["benefits"][0]
        assert comfort["name"] == "comfort"
        assert comfort["percentage"] == 100.0
        assert comfort["tier"] == "Very Common"

        overlaps = data["segment_breakdown"]["cross_segment_overlap"]
        assert overlaps[0]["identity"] == "healthcare_worker"
        assert overlaps[0]["motivation"] == "pain_symptom_relief"
        assert overlaps[0]["review_count"] == 1

    def test_analyze_explicit_product(self):
        record = make_record("Very comfortable socks.")
        record["product"] = "Product A"
        response = self.client.post("/api/reviews/analyze", json={"reviews": [record]})
        assert response.status_code == 200
        assert response.json()["breakdown"] == {"Product A": 1}

    def test_empty_corpus_is_422(self):
        response = self.client.post("/api/reviews/analyze", json={"reviews": []})
        assert response.status_code == 422
        assert "No usable reviews" in response.json()["detail"]

    def test_only_malformed_rows_is_422(self):
        response = self.client.post("/api/reviews/analyze", json={"reviews": [
            {"handle": "knee-high-compression", "review": "Fine."},
        ]})
        assert response.status_code == 422
