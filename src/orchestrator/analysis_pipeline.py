"""
Review Analysis Pipeline Orchestrator
======================================

Sequences the deterministic review analysis over a full corpus:
1. Classification (once per review)
2. Product aggregation (once per product line)
3. Segment profiles (once per segment)
4. Cross-segment analysis
5. Assembly of the immutable FullAnalysis

Features:
    - Deterministic (no timestamps, no sampling, order-independent counts)
    - Observable (stage logging and an advisory progress callback)
    - Cancellable between stages; a cancelled run returns nothing

Usage:
    from src.orchestrator.analysis_pipeline import AnalysisPipeline

    pipeline = AnalysisPipeline()
    analysis = pipeline.run(reviews, on_progress=print)
"""

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ..reviews.analysis_config import AnalysisConfig, catalog_path, get_config
from ..reviews.cross_segments import CrossSegmentAnalyzer
from ..reviews.pattern_catalog import PatternCatalog, default_catalog, load_catalog
from ..reviews.product_aggregator import ProductAggregator
from ..reviews.review_classifier import ReviewClassifier
from ..reviews.review_models import (
    AnalysisCancelled,
    ClassifiedReview,
    EmptyCorpusError,
    FullAnalysis,
    ProductAnalysis,
    Review,
    freeze,
)
from ..reviews.review_records import normalize_records
from ..reviews.segment_profiles import SegmentProfileBuilder

# Configure logging
logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Pipeline execution stages."""
    CLASSIFICATION = "classification"
    PRODUCT_AGGREGATION = "product_aggregation"
    SEGMENT_PROFILES = "segment_profiles"
    CROSS_SEGMENT = "cross_segment"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ProgressUpdate:
    """Advisory progress notification; never part of the result."""
    stage: str
    percent: int


ProgressCallback = Callable[[ProgressUpdate], None]
CancelCheck = Callable[[], bool]


class _ProgressReporter:
    """Delivers non-decreasing progress updates, isolating callback failures."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._last = 0

    def __call__(self, stage: str, percent: int):
        if self._callback is None:
            return
        self._last = max(self._last, min(100, max(0, int(percent))))
        try:
            self._callback(ProgressUpdate(stage=stage, percent=self._last))
        except Exception as e:
            logger.warning(f"Progress callback failed at '{stage}': {e}")


class AnalysisPipeline:
    """
    Review analysis orchestrator.

    The pipeline is designed to be:
    - Pure: a function of (reviews, catalog, config) only
    - Fail-fast only on an empty corpus
    - Never partially published: results exist only after the last stage
    """

    # Progress band covered by per-product aggregation
    PRODUCT_PROGRESS = (20, 60)

    def __init__(
        self,
        catalog: Optional[PatternCatalog] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            catalog: Taxonomy to analyze with (default: built-in catalog)
            config: Thresholds (default: AnalysisConfig defaults)
        """
        self.catalog = catalog or default_catalog()
        self.config = config or AnalysisConfig()

        self.classifier = ReviewClassifier(self.catalog)
        self.aggregator = ProductAggregator(self.catalog, self.config)
        self.segment_builder = SegmentProfileBuilder(self.catalog, self.aggregator, self.config)
        self.cross_analyzer = CrossSegmentAnalyzer(self.catalog)

        logger.info(
            f"AnalysisPipeline initialized: catalog={self.catalog.version} "
            f"workers={self.config.workers}"
        )

    @classmethod
    def from_env(cls) -> "AnalysisPipeline":
        """Pipeline configured from REVIEW_* environment variables."""
        path = catalog_path()
        catalog = load_catalog(path) if path else default_catalog()
        return cls(catalog=catalog, config=get_config())

    # =========================================================================
    # MAIN ORCHESTRATION
    # =========================================================================

    def run(
        self,
        reviews: Sequence[Review],
        on_progress: Optional[ProgressCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
        skipped_records: int = 0,
    ) -> FullAnalysis:
        """
        Run the complete analysis.

        Args:
            reviews: Parsed reviews in corpus order
            on_progress: Receives ProgressUpdate(stage, percent); advisory only
            should_cancel: Polled between stages; True aborts the run
            skipped_records: Malformed rows dropped upstream, echoed in the result

        Returns:
            FullAnalysis

        Raises:
            EmptyCorpusError: No reviews supplied
            AnalysisCancelled: should_cancel() returned True
        """
        if not reviews:
            raise EmptyCorpusError("No reviews to analyze")

        run_id = uuid.uuid4().hex[:8]
        report = _ProgressReporter(on_progress)
        started = time.monotonic()

        logger.info(
            f"=== Starting review analysis (run_id={run_id}, reviews={len(reviews)}) ===",
            extra={"run_id": run_id},
        )

        # STAGE 1: CLASSIFICATION
        self._check_cancel(should_cancel, PipelineStage.CLASSIFICATION)
        report(PipelineStage.CLASSIFICATION.value, 0)
        classified = self.classifier.classify_all(reviews, workers=self.config.workers)
        report(PipelineStage.CLASSIFICATION.value, 20)

        product_groups = self._group_by_product(classified)
        product_totals = {product: len(group) for product, group in product_groups.items()}

        # STAGE 2: PRODUCT AGGREGATION
        self._check_cancel(should_cancel, PipelineStage.PRODUCT_AGGREGATION)
        products = self._run_product_stage(product_groups, report, should_cancel)

        # STAGE 3: SEGMENT PROFILES
        self._check_cancel(should_cancel, PipelineStage.SEGMENT_PROFILES)
        report(PipelineStage.SEGMENT_PROFILES.value, 60)
        profiles = self.segment_builder.build(classified, product_totals)
        report(PipelineStage.SEGMENT_PROFILES.value, 85)

        # STAGE 4: CROSS-SEGMENT
        self._check_cancel(should_cancel, PipelineStage.CROSS_SEGMENT)
        breakdown = self.cross_analyzer.build_breakdown(classified, profiles, product_totals)
        report(PipelineStage.CROSS_SEGMENT.value, 95)

        # STAGE 5: ASSEMBLY
        self._check_cancel(should_cancel, PipelineStage.COMPLETE)
        analysis = FullAnalysis(
            total_reviews=len(reviews),
            breakdown=freeze(product_totals),
            products=freeze(products),
            segment_breakdown=breakdown,
            catalog_version=self.catalog.version,
            skipped_records=skipped_records,
        )
        report(PipelineStage.COMPLETE.value, 100)

        logger.info(
            f"=== Review analysis complete (run_id={run_id}) ===\n"
            f"  Reviews: {analysis.total_reviews}\n"
            f"  Products: {', '.join(f'{p}={n}' for p, n in product_totals.items())}\n"
            f"  Duration: {time.monotonic() - started:.2f}s",
            extra={"run_id": run_id, "duration": round(time.monotonic() - started, 3)},
        )
        return analysis

    def analyze_records(
        self,
        records: Iterable[Mapping[str, Any]],
        on_progress: Optional[ProgressCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> FullAnalysis:
        """
        Normalise raw rows, then run.

        Malformed rows are skipped and counted in FullAnalysis.skipped_records.

        Raises:
            EmptyCorpusError: No usable rows remain
        """
        normalized = normalize_records(records, self.catalog)
        if not normalized.reviews:
            raise EmptyCorpusError(
                f"No usable reviews ({normalized.skipped} malformed records skipped)"
            )
        return self.run(
            normalized.reviews,
            on_progress=on_progress,
            should_cancel=should_cancel,
            skipped_records=normalized.skipped,
        )

    # =========================================================================
    # STAGES
    # =========================================================================

    def _group_by_product(
        self,
        classified: Sequence[ClassifiedReview],
    ) -> Dict[str, List[ClassifiedReview]]:
        """Group by product line; known lines in catalog order, others alphabetically."""
        groups: Dict[str, List[ClassifiedReview]] = {}
        for c in classified:
            groups.setdefault(c.product, []).append(c)
        return {product: groups[product] for product in self.catalog.order_products(groups)}

    def _run_product_stage(
        self,
        product_groups: Mapping[str, Sequence[ClassifiedReview]],
        report: _ProgressReporter,
        should_cancel: Optional[CancelCheck],
    ) -> Dict[str, ProductAnalysis]:
        start, end = self.PRODUCT_PROGRESS
        products: Dict[str, ProductAnalysis] = {}
        count = len(product_groups)

        for i, (product, group) in enumerate(product_groups.items(), 1):
            self._check_cancel(should_cancel, PipelineStage.PRODUCT_AGGREGATION)
            products[product] = self.aggregator.analyze_product(product, group)
            report(
                f"{PipelineStage.PRODUCT_AGGREGATION.value}:{product}",
                start + round((end - start) * i / count),
            )

        logger.info(f"Product aggregation complete: {count} product lines")
        return products

    @staticmethod
    def _check_cancel(should_cancel: Optional[CancelCheck], stage: PipelineStage):
        if should_cancel is not None and should_cancel():
            logger.info(f"Analysis cancelled before stage '{stage.value}'")
            raise AnalysisCancelled(f"Analysis cancelled before stage '{stage.value}'")
