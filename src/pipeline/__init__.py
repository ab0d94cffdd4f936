"""
Urban Feedback - Report Pipeline
Photo to report: orchestration, failure policy and submission.
"""

from src.pipeline.orchestrator import (
    PipelineOrchestrator,
    PipelineState,
    PipelineStage,
    PipelineResult,
    DetectedData,
    Success,
    Degraded,
    Aborted,
    AbortReason,
    ResultKind,
    Notice,
    NoticeLevel,
    RunToken,
)
from src.pipeline.finalizer import SubmissionFinalizer

__all__ = [
    # Orchestrator
    "PipelineOrchestrator",
    "PipelineState",
    "PipelineStage",
    "PipelineResult",
    "DetectedData",
    "Success",
    "Degraded",
    "Aborted",
    "AbortReason",
    "ResultKind",
    "Notice",
    "NoticeLevel",
    "RunToken",
    # Finalizer
    "SubmissionFinalizer",
]
