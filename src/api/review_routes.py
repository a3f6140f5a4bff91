"""
Review Analysis API Routes
===========================

POST /api/reviews/analyze - run the deterministic analysis on a review export.
GET  /api/reviews/catalog - the pattern catalog (taxonomy + version) in use.
"""

import logging
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..orchestrator.analysis_pipeline import AnalysisPipeline
from ..reviews.review_models import EmptyCorpusError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ReviewRecord(BaseModel):
    """One uploaded review row. Malformed rows are skipped, not rejected."""
    handle: Optional[str] = None
    review: Optional[str] = None
    body: Optional[str] = None
    rating: Optional[Union[float, str]] = None
    date: Optional[str] = None
    created_at: Optional[str] = None
    product: Optional[str] = None


class AnalyzeRequest(BaseModel):
    reviews: List[ReviewRecord] = Field(default_factory=list)


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class CategoryStatResponse(BaseModel):
    name: str
    label: str
    count: int
    percentage: float
    tier: str
    quotes: List[str]


class StoryResponse(BaseModel):
    review: str
    rating: float
    date: str


class ProductAnalysisResponse(BaseModel):
    product: str
    total_reviews: int
    average_rating: float
    five_star_percent: float
    one_star_percent: float
    pain: List[CategoryStatResponse]
    benefits: List[CategoryStatResponse]
    transformation: List[CategoryStatResponse]
    segments: List[CategoryStatResponse]
    transformation_stories: List[StoryResponse]


class ShareResponse(BaseModel):
    count: int
    percentage: float


class SegmentProfileResponse(BaseModel):
    name: str
    label: str
    layer: str
    total_reviews: int
    percentage: float
    average_rating: float
    five_star_percent: float
    by_product: Dict[str, ShareResponse]
    top_benefits: List[CategoryStatResponse]
    top_pains: List[CategoryStatResponse]
    top_transformations: List[CategoryStatResponse]
    representative_quotes: List[str]


class CrossSegmentOverlapResponse(BaseModel):
    identity: str
    motivation: str
    review_count: int
    percent_of_identity: float
    percent_of_motivation: float
    average_rating: float
    by_product: Dict[str, ShareResponse]


class ProductAffinityResponse(BaseModel):
    segment: str
    layer: str
    count: int
    share_of_product: float
    concentration_index: float


class LayerCoverageResponse(BaseModel):
    layer: str
    segmented: int
    unsegmented: int


class SegmentBreakdownResponse(BaseModel):
    total_reviews: int
    segments: List[SegmentProfileResponse]
    cross_segment_overlap: List[CrossSegmentOverlapResponse]
    product_affinity: Dict[str, List[ProductAffinityResponse]]
    multi_segment: ShareResponse
    unsegmented: ShareResponse
    layer_coverage: List[LayerCoverageResponse]


class AnalysisResponse(BaseModel):
    total_reviews: int
    breakdown: Dict[str, int]
    products: Dict[str, ProductAnalysisResponse]
    segment_breakdown: SegmentBreakdownResponse
    catalog_version: str
    skipped_records: int


# ============================================================================
# PIPELINE
# ============================================================================

_pipeline: Optional[AnalysisPipeline] = None


def get_pipeline() -> AnalysisPipeline:
    """Lazily build the shared pipeline from environment configuration."""
    global _pipeline
    if _pipeline is None:
        _pipeline = AnalysisPipeline.from_env()
    return _pipeline


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/analyze", response_model=AnalysisResponse)
def analyze_reviews(request: AnalyzeRequest):
    """Run the full deterministic analysis on the uploaded rows."""
    records = [r.model_dump() for r in request.reviews]

    try:
        analysis = get_pipeline().analyze_records(records)
    except EmptyCorpusError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Review analysis failed for {len(records)} records: {e}")
        raise HTTPException(status_code=500, detail="Review analysis failed")

    logger.info(
        f"Analyzed {analysis.total_reviews} reviews "
        f"({analysis.skipped_records} skipped, catalog {analysis.catalog_version})"
    )
    return analysis.to_dict()


@router.get("/catalog")
def get_catalog():
    """Returns the taxonomy the analysis endpoint uses."""
    return get_pipeline().catalog.to_dict()
