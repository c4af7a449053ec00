"""
Report Lifecycle

Allowed status transitions of an assessment report:
- draft -> submitted       (explicit user action, idempotent)
- draft -> expired_draft   (period-closing job only)

Submitted and expired drafts are terminal for the engine.
"""

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional, Union

from .constants import ReportStatus


ALLOWED_TRANSITIONS: Mapping[ReportStatus, FrozenSet[ReportStatus]] = MappingProxyType({
    ReportStatus.DRAFT: frozenset({ReportStatus.SUBMITTED, ReportStatus.EXPIRED_DRAFT}),
    ReportStatus.SUBMITTED: frozenset(),
    ReportStatus.EXPIRED_DRAFT: frozenset(),
})


class ReportTransitionError(ValueError):
    """Raised when a report status change is not allowed."""

    def __init__(self, current: ReportStatus, target: ReportStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move report from '{current.value}' to '{target.value}'")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def can_transition(
    current: Union[ReportStatus, str],
    target: Union[ReportStatus, str]
) -> bool:
    return ReportStatus(target) in ALLOWED_TRANSITIONS[ReportStatus(current)]


def check_transition(
    current: Union[ReportStatus, str],
    target: Union[ReportStatus, str]
) -> None:
    """
    Raises:
        ReportTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise ReportTransitionError(ReportStatus(current), ReportStatus(target))


def submit(report: Any, now: Optional[datetime] = None) -> bool:
    """
    Move a draft report to submitted and stamp submitted_at.

    Submitting an already submitted report is a no-op.

    Args:
        report: Object with `status` and `submitted_at` attributes
        now: Submission timestamp (defaults to current UTC time)

    Returns:
        True if the status changed, False for a repeated submit

    Raises:
        ReportTransitionError: If the report is an expired draft
    """
    current = ReportStatus(report.status)
    if current == ReportStatus.SUBMITTED:
        return False

    check_transition(current, ReportStatus.SUBMITTED)
    report.status = ReportStatus.SUBMITTED.value
    report.submitted_at = now or utcnow()
    return True


def expire(report: Any) -> bool:
    """
    Move a draft report to expired_draft. Repeated expiry is a no-op.

    Raises:
        ReportTransitionError: If the report was already submitted
    """
    current = ReportStatus(report.status)
    if current == ReportStatus.EXPIRED_DRAFT:
        return False

    check_transition(current, ReportStatus.EXPIRED_DRAFT)
    report.status = ReportStatus.EXPIRED_DRAFT.value
    return True


class ReportLockedError(ValueError):
    """Raised when answers are written to a report that is no longer a draft."""

    def __init__(self, status: ReportStatus):
        self.status = status
        super().__init__(f"Report is '{status.value}' and can no longer be edited")


def check_editable(report: Any) -> None:
    """
    Raises:
        ReportLockedError: If the report is not a draft
    """
    status = ReportStatus(report.status)
    if status != ReportStatus.DRAFT:
        raise ReportLockedError(status)
