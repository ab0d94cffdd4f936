"""
Urban Feedback - Crowdsource Module
Photo capture, incident classification and the report store.
"""

from src.crowdsource.capture import (
    ImageHandle,
    CaptureCapability,
    InMemoryCapture,
    FileCapture,
)
from src.crowdsource.classifier import (
    Classifier,
    SimulatedClassifier,
    CategoryResult,
    IncidentCategory,
    default_category,
)
from src.crowdsource.report_store import (
    ReportStore,
    Report,
    ReportStatus,
    ReportStoreError,
)

__all__ = [
    # Capture
    "ImageHandle",
    "CaptureCapability",
    "InMemoryCapture",
    "FileCapture",
    # Classifier
    "Classifier",
    "SimulatedClassifier",
    "CategoryResult",
    "IncidentCategory",
    "default_category",
    # Report Store
    "ReportStore",
    "Report",
    "ReportStatus",
    "ReportStoreError",
]
