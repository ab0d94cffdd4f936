"""
Report store for submitted incident reports
Keeps finished reports in most-recent-first order
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

from src.core.constants import STATUS_LABELS
from src.crowdsource.classifier import CategoryResult

logger = logging.getLogger(__name__)


class ReportStoreError(Exception):
    """Base exception for report store errors."""


class DuplicateReportError(ReportStoreError):
    """Raised when a report id is already present in the store."""


class ReportNotFoundError(ReportStoreError):
    """Raised when a report id is not present in the store."""


class StatusRegressionError(ReportStoreError):
    """Raised when a status change would move a report backwards."""


class ReportStatus(Enum):
    """Lifecycle of a report. Only moves forward."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @property
    def display_label(self) -> str:
        return STATUS_LABELS[self.value]


_STATUS_ORDER = [ReportStatus.PENDING, ReportStatus.PROCESSING, ReportStatus.COMPLETED]


@dataclass(frozen=True)
class Report:
    """
    Incident report built from a finished pipeline run.

    Immutable; the store swaps in a new instance when the status advances.
    """
    id: str
    image_ref: str
    category: CategoryResult
    address: str
    description: str = ""
    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not self.id:
            raise ValueError("Report id is required")
        if not self.image_ref:
            raise ValueError("Report requires a captured image")
        if not self.address:
            raise ValueError("Report address must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "image_ref": self.image_ref,
            "category": self.category.to_dict(),
            "address": self.address,
            "description": self.description,
            "status": self.status.value,
            "status_label": self.status.display_label,
            "created_at": self.created_at.isoformat(),
        }


class ReportStore:
    """
    Append-only collection of reports.

    New reports go to the front. Readers get snapshot lists, so a list
    handed out earlier never changes under the caller.
    """

    def __init__(self):
        self._reports: Deque[Report] = deque()
        self._by_id: Dict[str, Report] = {}

    def new_id(self, created_at: Optional[datetime] = None) -> str:
        """
        Generate a report id unique within this store.

        Millisecond timestamp plus a random suffix, so two reports created in
        the same millisecond still get different ids.
        """
        created_at = created_at or datetime.now(timezone.utc)
        millis = int(created_at.timestamp() * 1000)

        while True:
            report_id = f"{millis}-{uuid.uuid4().hex[:8].upper()}"
            if report_id not in self._by_id:
                return report_id

    def append(self, report: Report) -> Report:
        """
        Add a report at the front of the store.

        Raises:
            DuplicateReportError: If the id is already stored
        """
        if report.id in self._by_id:
            raise DuplicateReportError(f"Report {report.id} already exists")

        self._reports.appendleft(report)
        self._by_id[report.id] = report

        logger.info(f"Report stored: {report.id} ({report.category.id}) at {report.address}")

        return report

    def list(self) -> List[Report]:
        """Get all reports, most recent first."""
        return list(self._reports)

    def get(self, report_id: str) -> Optional[Report]:
        """Get report by ID."""
        return self._by_id.get(report_id)

    def advance_status(self, report_id: str, new_status: ReportStatus) -> Report:
        """
        Move a report forward in its lifecycle.

        Setting the current status again is a no-op.

        Raises:
            ReportNotFoundError: Unknown report id
            StatusRegressionError: New status is behind the current one
        """
        report = self._by_id.get(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report {report_id} not found")

        if new_status == report.status:
            return report

        if new_status.rank < report.status.rank:
            raise StatusRegressionError(
                f"Report {report_id} cannot go from {report.status.value} to {new_status.value}"
            )

        updated = replace(report, status=new_status)
        index = self._reports.index(report)
        self._reports[index] = updated
        self._by_id[report_id] = updated

        logger.info(f"Report {report_id} status: {report.status.value} -> {new_status.value}")

        return updated

    def get_statistics(self) -> Dict[str, Any]:
        """Get report statistics."""
        by_status: Dict[str, int] = {}
        by_category: Dict[str, int] = {}

        for report in self._reports:
            status = report.status.value
            by_status[status] = by_status.get(status, 0) + 1

            category = report.category.id
            by_category[category] = by_category.get(category, 0) + 1

        return {
            "total_reports": len(self._reports),
            "by_status": by_status,
            "by_category": by_category,
        }

    def __len__(self) -> int:
        return len(self._reports)
