"""
Period Closer

Scheduled job body: closes active assessment periods whose submission
window has ended.

For each expired period:
1. Flips its draft reports to expired_draft
2. Deactivates the period
3. Commits

Each period is committed on its own, so a database error on one period is
logged and rolled back without blocking the others. Re-running the job is a
no-op because closed periods are no longer active.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assessment.models import AssessmentPeriod, AssessmentReport
from .constants import ReportStatus
from .contracts import PeriodClosingResult
from .lifecycle import utcnow


def find_expired_periods(db: Session, now: datetime):
    return (
        db.query(AssessmentPeriod)
        .filter(
            AssessmentPeriod.is_active.is_(True),
            AssessmentPeriod.submission_end < now,
        )
        .order_by(AssessmentPeriod.submission_end.asc(), AssessmentPeriod.id.asc())
        .all()
    )


def expire_period_drafts(db: Session, period_id: int, now: datetime) -> int:
    """Move every draft report of a period to expired_draft. Returns the count."""
    return (
        db.query(AssessmentReport)
        .filter(
            AssessmentReport.period_id == period_id,
            AssessmentReport.status == ReportStatus.DRAFT.value,
        )
        .update(
            {
                AssessmentReport.status: ReportStatus.EXPIRED_DRAFT.value,
                AssessmentReport.updated_at: now,
            },
            synchronize_session=False,
        )
    )


def close_expired_periods(db: Session, now: Optional[datetime] = None) -> PeriodClosingResult:
    """
    Close every active period whose submission end has passed.

    Args:
        db: Database session
        now: Reference time (defaults to current UTC time)

    Returns:
        PeriodClosingResult with processed / failed period ids and the
        number of drafts expired
    """
    import logging
    logger = logging.getLogger(__name__)

    now = now or utcnow()
    result = PeriodClosingResult(ran_at=now)

    expired = find_expired_periods(db, now)
    if not expired:
        logger.info("⏰ No expired active periods to close")
        return result

    logger.info(f"⏰ Closing {len(expired)} expired period(s)")

    for period in expired:
        period_id = period.id
        period_name = period.display_name
        try:
            expired_count = expire_period_drafts(db, period_id, now)
            period.is_active = False
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to close period {period_id} ({period_name}): {e}")
            result.failed_periods.append(str(period_id))
            continue

        result.processed_periods.append(str(period_id))
        result.expired_drafts_count += expired_count
        logger.info(f"✅ Closed period {period_id} ({period_name}): {expired_count} draft(s) expired")

    return result
