"""
Urban Feedback - Report Pipeline Orchestrator
Turns a captured photo into a categorized, geolocated detection.

Stages run one after another, each an await point:

    upload -> classify -> permission check -> GPS fix -> reverse geocode

Failures are split in two tiers. A denied location permission aborts the
run and leaves nothing to submit. Anything else (GPS timeout, platform
error, unexpected exception) degrades the run to a default category and an
undetermined location, and the report can still be submitted.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from src.core.config import settings
from src.core.constants import (
    LOCATION_UNDETERMINED,
    NOTICE_LOCATION_FAILED,
    NOTICE_PERMISSION_DENIED,
    STAGE_LABELS,
)
from src.crowdsource.capture import CaptureCapability, ImageHandle
from src.crowdsource.classifier import CategoryResult, Classifier, default_category
from src.location.capabilities import Coordinates, PermissionDeniedError
from src.location.geocoder import ReverseGeocoder
from src.location.locator import LocationStage

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Pipeline stages in execution order."""
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    LOCATING = "locating"
    RESOLVING_ADDRESS = "resolving_address"

    @property
    def label(self) -> str:
        return STAGE_LABELS[self.value]


class ResultKind(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"
    ABORTED = "aborted"


class AbortReason(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    SUPERSEDED = "superseded"


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """User-facing message raised by the pipeline."""
    level: NoticeLevel
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level.value, "message": self.message}


@dataclass(frozen=True)
class DetectedData:
    """Category and address found for a photo, before it becomes a report."""
    category: CategoryResult
    address: str
    coordinates: Optional[Coordinates] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.to_dict(),
            "address": self.address,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
        }


@dataclass(frozen=True)
class Success:
    detected: DetectedData
    kind: ClassVar[ResultKind] = ResultKind.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "detected": self.detected.to_dict()}


@dataclass(frozen=True)
class Degraded:
    """Run finished with fallback data after a non-permission failure."""
    detected: DetectedData
    error: str = ""
    kind: ClassVar[ResultKind] = ResultKind.DEGRADED

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "detected": self.detected.to_dict(), "error": self.error}


@dataclass(frozen=True)
class Aborted:
    """Run produced nothing to submit."""
    reason: AbortReason
    kind: ClassVar[ResultKind] = ResultKind.ABORTED

    @property
    def detected(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "reason": self.reason.value}


PipelineResult = Union[Success, Degraded, Aborted]


class RunToken:
    """
    Cancellation token for one pipeline run.

    Anything that outlives its run (stage completions, the delayed reset
    after submission) checks the token before touching pipeline state.
    """

    __slots__ = ("run_id", "_cancelled")

    _counter = 0

    def __init__(self):
        RunToken._counter += 1
        self.run_id = RunToken._counter
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"RunToken(run_id={self.run_id}, cancelled={self._cancelled})"


@dataclass
class PipelineState:
    """Transient state of the current run. Owned by the orchestrator."""
    image: Optional[ImageHandle] = None
    is_analyzing: bool = False
    stage: Optional[PipelineStage] = None
    progress_label: str = ""
    detected: Optional[DetectedData] = None
    description: str = ""
    show_success: bool = False
    submitted: bool = False
    errors: list = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            self.image is None and
            self.detected is None and
            not self.is_analyzing and
            not self.description
        )


def _log_notice(notice: Notice) -> None:
    logger.log(
        logging.ERROR if notice.level == NoticeLevel.ERROR else logging.WARNING,
        f"Notice: {notice.message}"
    )


class PipelineOrchestrator:
    """
    Drives one report run at a time.

    Starting a new run, or a retake, invalidates the token of the previous
    run. A stale run keeps going until its current await returns, then
    notices the cancelled token and leaves the new state alone.
    """

    def __init__(
        self,
        classifier: Classifier,
        location: LocationStage,
        geocoder: ReverseGeocoder,
        upload_delay: Optional[float] = None,
        notifier: Optional[Callable[[Notice], None]] = None,
        on_progress: Optional[Callable[[PipelineStage, str], None]] = None
    ):
        """
        Initialize orchestrator.

        Args:
            classifier: Image classification strategy
            location: Permission-gated location stage
            geocoder: Reverse geocoding stage
            upload_delay: Simulated upload time in seconds
            notifier: Receives user-facing notices
            on_progress: Called with each stage before it starts
        """
        self.classifier = classifier
        self.location = location
        self.geocoder = geocoder
        self.upload_delay = settings.upload_delay_seconds if upload_delay is None else upload_delay
        self.notifier = notifier or _log_notice
        self.on_progress = on_progress

        self._state = PipelineState()
        self._token = RunToken()
        self.last_notice: Optional[Notice] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def token(self) -> RunToken:
        return self._token

    def is_current(self, token: RunToken) -> bool:
        """Check that a token belongs to the live run."""
        return token is self._token and not token.cancelled

    async def capture_and_run(self, capture: CaptureCapability) -> Optional[PipelineResult]:
        """
        Capture a photo and run the pipeline on it.

        Returns:
            Pipeline result, or None when the capture was cancelled
        """
        image = await capture.capture()
        if image is None:
            return None
        return await self.run_pipeline(image)

    async def run_pipeline(self, image: ImageHandle) -> PipelineResult:
        """
        Run all stages for a captured image.

        Args:
            image: Handle of the captured photo

        Returns:
            Success, Degraded, or Aborted
        """
        token = self._start_run(image)
        logger.info(f"Pipeline run {token.run_id} started for {image.ref}")

        try:
            self._enter_stage(token, PipelineStage.UPLOADING)
            await asyncio.sleep(self.upload_delay)
            if token.cancelled:
                return self._superseded(token)

            self._enter_stage(token, PipelineStage.ANALYZING)
            category = await self.classifier.classify(image)
            if token.cancelled:
                return self._superseded(token)

            self._enter_stage(token, PipelineStage.LOCATING)
            try:
                coords = await self.location.locate()
            except PermissionDeniedError:
                if token.cancelled:
                    return self._superseded(token)
                return self._abort_permission_denied(token)
            if token.cancelled:
                return self._superseded(token)

            self._enter_stage(token, PipelineStage.RESOLVING_ADDRESS)
            address = await self.geocoder.resolve(coords.lat, coords.lng)
            if token.cancelled:
                return self._superseded(token)

            detected = DetectedData(category=category, address=address, coordinates=coords)
            self._state.detected = detected
            logger.info(f"Pipeline run {token.run_id} finished: {category.id} at {address}")
            return Success(detected=detected)

        except Exception as e:
            if token.cancelled:
                return self._superseded(token)
            return self._degrade(token, e)

        finally:
            if self.is_current(token):
                self._state.is_analyzing = False

    def retake(self) -> None:
        """Drop the current photo and results so a new capture can start."""
        self._token.cancel()
        self._token = RunToken()
        self._state = PipelineState()
        logger.info("Retake requested, pipeline state cleared")

    def set_description(self, text: str) -> None:
        """Store the user's description draft."""
        self._state.description = text or ""

    def mark_submitted(self) -> None:
        self._state.submitted = True
        self._state.show_success = True

    def reset(self, token: RunToken) -> bool:
        """
        Clear pipeline state if the token still belongs to the live run.

        Returns:
            True if the state was cleared
        """
        if not self.is_current(token):
            logger.debug(f"Ignoring reset for stale run {token.run_id}")
            return False

        self._state = PipelineState()
        return True

    def _start_run(self, image: ImageHandle) -> RunToken:
        self._token.cancel()
        self._token = RunToken()
        self._state = PipelineState(image=image, is_analyzing=True)
        self.last_notice = None
        return self._token

    def _enter_stage(self, token: RunToken, stage: PipelineStage) -> None:
        self._state.stage = stage
        self._state.progress_label = stage.label
        logger.info(f"Pipeline run {token.run_id}: {stage.value}")

        if self.on_progress:
            self.on_progress(stage, stage.label)

    def _notify(self, notice: Notice) -> None:
        self.last_notice = notice
        self.notifier(notice)

    def _superseded(self, token: RunToken) -> Aborted:
        logger.info(f"Pipeline run {token.run_id} superseded, result discarded")
        return Aborted(reason=AbortReason.SUPERSEDED)

    def _abort_permission_denied(self, token: RunToken) -> Aborted:
        logger.warning(f"Pipeline run {token.run_id} aborted: location permission denied")
        self._state = PipelineState()
        self._notify(Notice(level=NoticeLevel.ERROR, message=NOTICE_PERMISSION_DENIED))
        return Aborted(reason=AbortReason.PERMISSION_DENIED)

    def _degrade(self, token: RunToken, error: Exception) -> Degraded:
        stage = self._state.stage.value if self._state.stage else "start"
        logger.error(f"Pipeline run {token.run_id} failed while {stage}: {error!r}")

        detected = DetectedData(category=default_category(), address=LOCATION_UNDETERMINED)
        self._state.detected = detected
        self._state.errors.append(repr(error))
        self._notify(Notice(level=NoticeLevel.WARNING, message=NOTICE_LOCATION_FAILED))

        return Degraded(detected=detected, error=repr(error))
