"""
Review Analysis FastAPI Application
===================================

REST API for the deterministic review analysis & segmentation engine.

Endpoints:
    GET  /api/health          - Health check
    GET  /api/reviews/catalog - Pattern catalog in use
    POST /api/reviews/analyze - Analyze a list of review records

Usage:
    uvicorn src.api.main:app --reload --port 8000

    Or with CLI:
    python -m src.api.main
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from pydantic import BaseModel

from .review_routes import router as review_router, get_pipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    catalog_version: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Review Analysis API...")

    # Compile the catalog once at startup; a bad REVIEW_CATALOG_PATH fails here
    pipeline = get_pipeline()
    logger.info(f"Pattern catalog {pipeline.catalog.version} loaded")

    yield

    logger.info("Shutting down Review Analysis API...")


# Create FastAPI app
app = FastAPI(
    title="Review Analysis API",
    description="Deterministic review analysis & customer segmentation",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS configuration
# In production, set CORS_ORIGINS env var (comma-separated)
_default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra_origins = os.getenv("CORS_ORIGINS", "")
if _extra_origins:
    _default_origins.extend([o.strip() for o in _extra_origins.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=_default_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Review Analysis routes
app.include_router(review_router)


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        catalog_version=get_pipeline().catalog.version,
    )


if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("Review Analysis API")
    print("=" * 60)
    print()
    print("API Documentation:")
    print("  - Swagger UI: http://localhost:8000/docs")
    print("  - ReDoc:      http://localhost:8000/redoc")
    print()
    print("Endpoints:")
    print("  GET  /api/health          - Health check")
    print("  GET  /api/reviews/catalog - Pattern catalog")
    print("  POST /api/reviews/analyze - Analyze review records")
    print()
    print("=" * 60)

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
