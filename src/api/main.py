"""
Urban Feedback - REST API

FastAPI application exposing the report pipeline and the report store
to client apps.

Run with: uvicorn src.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from src.core.config import settings
from src.core.logging import setup_logging
from src.crowdsource.capture import ImageHandle, InMemoryCapture
from src.crowdsource.classifier import Classifier, SimulatedClassifier
from src.crowdsource.report_store import (
    Report,
    ReportNotFoundError,
    ReportStatus,
    ReportStore,
    StatusRegressionError,
)
from src.location.capabilities import PermissionState, ReportedLocation
from src.location.geocoder import ReverseGeocoder
from src.location.locator import LocationStage
from src.pipeline.finalizer import SubmissionFinalizer
from src.pipeline.orchestrator import AbortReason, Aborted, PipelineOrchestrator

API_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield
    await _geocoder.aclose()


# FastAPI app
app = FastAPI(
    title="Urban Feedback",
    description="Turn a photo of an urban incident into a categorized, geolocated report",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    environment: str
    timestamp: str
    report_count: int


class CategoryResponse(BaseModel):
    """Incident category assigned by the classifier."""
    id: str
    label: str
    confidence: float = Field(ge=0, le=1)


class ReportResponse(BaseModel):
    """Incident report."""
    id: str
    image_ref: str
    category: CategoryResponse
    address: str
    description: str
    status: str
    status_label: str
    created_at: str


class ReportListResponse(BaseModel):
    """Reports, most recent first."""
    count: int
    reports: List[ReportResponse]


class ReportStatsResponse(BaseModel):
    """Report statistics."""
    total_reports: int
    by_status: dict
    by_category: dict


class ReportSubmissionResponse(BaseModel):
    """Outcome of a photo submission."""
    pipeline_result: str
    notice: Optional[str] = None
    report: ReportResponse


# ============================================================================
# Services
# ============================================================================

_report_store = ReportStore()
_photos = InMemoryCapture()
_classifier: Classifier = SimulatedClassifier()
_geocoder = ReverseGeocoder()


def _to_response(report: Report) -> ReportResponse:
    return ReportResponse(**report.to_dict())



# ============================================================================
# System Routes
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
        report_count=len(_report_store),
    )


# ============================================================================
# Report Routes
# ============================================================================

@app.post("/api/v1/reports/with-photo", response_model=ReportSubmissionResponse, tags=["Reports"])
async def create_report_with_photo(
    photo: UploadFile = File(...),
    permission: PermissionState = Form(PermissionState.GRANTED),
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    description: Optional[str] = Form(None),
):
    """
    Create an incident report from a photo.

    The photo is classified and the location reported by the device is
    resolved to an address. Without a position fix the report is still
    created, with the default category and an undetermined location.
    A denied location permission rejects the submission.
    """
    photo_data = await photo.read()
    if not photo_data:
        raise HTTPException(status_code=400, detail="Photo is empty")

    handle = _photos.add(photo_data, content_type=photo.content_type or "image/jpeg")
    device = ReportedLocation(permission=permission, latitude=latitude, longitude=longitude)

    try:
        return await _run_and_submit(handle, device, description)
    except HTTPException:
        # No report points at the photo
        _photos.discard(handle.ref)
        raise


async def _run_and_submit(
    handle: ImageHandle,
    device: ReportedLocation,
    description: Optional[str]
) -> ReportSubmissionResponse:
    orchestrator = PipelineOrchestrator(
        classifier=_classifier,
        location=LocationStage(permission=device, position=device),
        geocoder=_geocoder,
    )

    result = await orchestrator.capture_and_run(_photos)
    notice = orchestrator.last_notice.message if orchestrator.last_notice else None

    if result is None:
        raise HTTPException(status_code=400, detail="No photo captured")

    if isinstance(result, Aborted):
        status_code = 403 if result.reason == AbortReason.PERMISSION_DENIED else 409
        raise HTTPException(status_code=status_code, detail=notice or result.reason.value)

    finalizer = SubmissionFinalizer(orchestrator, _report_store)
    report = finalizer.submit(description)
    # The request is the whole session; nothing is left to reset
    finalizer.cancel_pending_reset()

    if report is None:
        raise HTTPException(status_code=409, detail="Nothing to submit")

    logger.info(f"Report {report.id} created via API from {handle.ref} ({result.kind.value})")

    return ReportSubmissionResponse(
        pipeline_result=result.kind.value,
        notice=notice,
        report=_to_response(report),
    )


@app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
async def list_reports(
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(default=50, ge=1, le=200),
):
    """List reports, most recent first."""
    reports = _report_store.list()

    if status is not None:
        reports = [r for r in reports if r.status.value == status]

    reports = reports[:limit]

    return ReportListResponse(
        count=len(reports),
        reports=[_to_response(r) for r in reports],
    )


@app.get("/api/v1/reports/stats/summary", response_model=ReportStatsResponse, tags=["Reports"])
async def get_report_stats():
    """Get statistics for all reports."""
    return ReportStatsResponse(**_report_store.get_statistics())


@app.get("/api/v1/reports/{report_id}", response_model=ReportResponse, tags=["Reports"])
async def get_report(report_id: str):
    """Get a specific report by ID."""
    report = _report_store.get(report_id)

    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    return _to_response(report)


@app.get("/api/v1/reports/{report_id}/photo", tags=["Reports"])
async def get_report_photo(report_id: str):
    """Get the photo attached to a report."""
    report = _report_store.get(report_id)

    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    handle = _photos.get_handle(report.image_ref)
    data = _photos.get_image(report.image_ref)
    if handle is None or data is None:
        raise HTTPException(status_code=404, detail="Photo not available")

    return Response(content=data, media_type=handle.content_type)


@app.put("/api/v1/reports/{report_id}/status", response_model=ReportResponse, tags=["Reports"])
async def update_report_status(
    report_id: str,
    status: str = Query(..., description="New status: pending, processing, completed"),
):
    """Advance the status of a report. Status never moves backwards."""
    try:
        status_enum = ReportStatus(status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")

    try:
        report = _report_store.advance_status(report_id, status_enum)
    except ReportNotFoundError:
        raise HTTPException(status_code=404, detail="Report not found")
    except StatusRegressionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _to_response(report)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.api.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
