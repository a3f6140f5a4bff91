"""
Review Analysis Orchestrator Module
===================================

Orchestration layer for the review analysis engine.

Components:
    - AnalysisPipeline: Sequences classification, aggregation and segmentation
    - CLI: Command-line interface
    - logging_config: Console / JSON logging setup

Usage:
    from src.orchestrator import AnalysisPipeline

    analysis = AnalysisPipeline().run(reviews)
"""

from .analysis_pipeline import (
    AnalysisPipeline,
    PipelineStage,
    ProgressUpdate,
)

__all__ = [
    "AnalysisPipeline",
    "PipelineStage",
    "ProgressUpdate",
]
