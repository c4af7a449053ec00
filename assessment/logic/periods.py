"""
Assessment Periods

Period lookups and rules:
- At most one active period; activating one deactivates the others
- Submission window checks and days remaining
- Previous-period lookup for trend comparison
"""

import math
import re
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from assessment.models import AssessmentPeriod
from .constants import ACADEMIC_YEAR_PATTERN
from .lifecycle import utcnow


_ACADEMIC_YEAR = re.compile(ACADEMIC_YEAR_PATTERN)


class SubmissionWindowClosedError(Exception):
    """Raised when a report is created, edited or submitted outside the window."""

    def __init__(self, period: Optional[AssessmentPeriod] = None):
        self.period = period
        if period is None:
            message = "No active assessment period"
        else:
            message = f"Submission window for {period.display_name} is closed"
        super().__init__(message)


def is_valid_academic_year(value: Optional[str]) -> bool:
    """'2024-2025' style: two consecutive four-digit years."""
    if not value:
        return False
    match = _ACADEMIC_YEAR.match(value.strip())
    if not match:
        return False
    return int(match.group(2)) == int(match.group(1)) + 1


def is_submission_open(period: AssessmentPeriod, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return bool(period.is_active) and period.submission_start <= now <= period.submission_end


def ensure_submission_open(period: Optional[AssessmentPeriod], now: Optional[datetime] = None) -> None:
    """
    Raises:
        SubmissionWindowClosedError: If there is no period or its window is closed
    """
    if period is None or not is_submission_open(period, now):
        raise SubmissionWindowClosedError(period)


def days_remaining(period: AssessmentPeriod, now: Optional[datetime] = None) -> int:
    """
    Whole days until the submission window closes (rounded up).
    Negative once the deadline has passed.
    """
    now = now or utcnow()
    seconds = (period.submission_end - now).total_seconds()
    return math.ceil(seconds / 86400)


def get_active_period(db: Session) -> Optional[AssessmentPeriod]:
    return (
        db.query(AssessmentPeriod)
        .filter(AssessmentPeriod.is_active.is_(True))
        .order_by(AssessmentPeriod.submission_end.desc())
        .first()
    )


def get_period(db: Session, period_id: int) -> Optional[AssessmentPeriod]:
    return db.query(AssessmentPeriod).filter(AssessmentPeriod.id == period_id).first()


def get_previous_period(db: Session, period: AssessmentPeriod) -> Optional[AssessmentPeriod]:
    """Latest period whose submission window ended before the given one's."""
    return (
        db.query(AssessmentPeriod)
        .filter(
            AssessmentPeriod.id != period.id,
            AssessmentPeriod.submission_end < period.submission_end,
        )
        .order_by(AssessmentPeriod.submission_end.desc())
        .first()
    )


def create_period(
    db: Session,
    academic_year: str,
    term_name: str,
    submission_start: datetime,
    submission_end: datetime,
    sequence_order: int = 1,
    activate: bool = False
) -> AssessmentPeriod:
    """
    Create an assessment period.

    Raises:
        ValueError: On a malformed academic year or an empty window
    """
    if not is_valid_academic_year(academic_year):
        raise ValueError(f"Invalid academic year: {academic_year!r} (expected e.g. '2024-2025')")
    if submission_end <= submission_start:
        raise ValueError("Submission end must be after submission start")

    period = AssessmentPeriod(
        academic_year=academic_year.strip(),
        term_name=term_name,
        sequence_order=sequence_order,
        submission_start=submission_start,
        submission_end=submission_end,
        is_active=False,
    )
    db.add(period)
    db.flush()

    if activate:
        activate_period(db, period.id)
    return period


def activate_period(db: Session, period_id: int) -> AssessmentPeriod:
    """
    Make one period the single active period.

    Raises:
        LookupError: If the period does not exist
    """
    period = get_period(db, period_id)
    if period is None:
        raise LookupError(f"Assessment period {period_id} not found")

    db.query(AssessmentPeriod).filter(
        AssessmentPeriod.id != period.id,
        AssessmentPeriod.is_active.is_(True),
    ).update({AssessmentPeriod.is_active: False}, synchronize_session="fetch")

    period.is_active = True
    db.flush()
    return period
