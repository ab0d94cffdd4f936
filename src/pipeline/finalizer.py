"""
Submission finalizer
Turns a finished pipeline run and the user's description into a report
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from src.core.config import settings
from src.core.constants import NOTICE_SUBMITTED
from src.crowdsource.report_store import Report, ReportStatus, ReportStore
from src.pipeline.orchestrator import PipelineOrchestrator, RunToken

logger = logging.getLogger(__name__)


class SubmissionFinalizer:
    """
    Creates reports from pipeline output.

    After a submission the success acknowledgment stays up for a short
    delay, then the pipeline state is reset and the caller returns home.
    The reset is bound to the run that was submitted: if a retake or a new
    run starts first, the reset does nothing.
    """

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        store: ReportStore,
        reset_delay: Optional[float] = None,
        on_reset: Optional[Callable[[], None]] = None
    ):
        """
        Initialize finalizer.

        Args:
            orchestrator: Orchestrator holding the pipeline state
            store: Store receiving new reports
            reset_delay: Seconds before the state is reset after submission
            on_reset: Called after the reset (navigation back to home)
        """
        self.orchestrator = orchestrator
        self.store = store
        self.reset_delay = (
            settings.success_reset_delay_seconds if reset_delay is None else reset_delay
        )
        self.on_reset = on_reset

        self._pending_reset: Optional[asyncio.TimerHandle] = None

    @property
    def has_pending_reset(self) -> bool:
        return self._pending_reset is not None

    def submit(self, description: Optional[str] = None) -> Optional[Report]:
        """
        Submit the current run as a report.

        Args:
            description: Free text; the state's draft is used when omitted

        Returns:
            The new report, or None when there is nothing to submit
        """
        state = self.orchestrator.state

        if state.image is None or state.detected is None:
            logger.info("Submit ignored: no captured image or detection result")
            return None

        if state.submitted:
            logger.info("Submit ignored: run already submitted")
            return None

        if description is None:
            description = state.description

        created_at = datetime.now(timezone.utc)
        report = Report(
            id=self.store.new_id(created_at),
            image_ref=state.image.ref,
            category=state.detected.category,
            address=state.detected.address,
            description=(description or "").strip(),
            status=ReportStatus.PENDING,
            created_at=created_at,
        )

        self.store.append(report)
        self.orchestrator.mark_submitted()
        logger.info(f"{NOTICE_SUBMITTED} ({report.id})")

        self._schedule_reset(self.orchestrator.token)

        return report

    def cancel_pending_reset(self) -> None:
        """Drop a scheduled reset, e.g. when the screen goes away."""
        if self._pending_reset is not None:
            self._pending_reset.cancel()
            self._pending_reset = None

    def _schedule_reset(self, token: RunToken) -> None:
        self.cancel_pending_reset()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to wait on; reset right away
            self._reset(token)
            return

        self._pending_reset = loop.call_later(self.reset_delay, self._reset, token)

    def _reset(self, token: RunToken) -> None:
        self._pending_reset = None

        if not self.orchestrator.reset(token):
            return

        logger.info(f"Pipeline state reset after submission of run {token.run_id}")
        if self.on_reset:
            self.on_reset()
