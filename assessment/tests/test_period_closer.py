"""
Test the period-closing job.
"""

from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from assessment.logic import period_closer
from assessment.logic.lifecycle import utcnow
from assessment.models import AssessmentReport


def _expired_period(make_period, term_name, days_ago=1):
    now = utcnow()
    return make_period(
        term_name=term_name,
        start=now - timedelta(days=60),
        end=now - timedelta(days=days_ago),
        is_active=True,
    )


def test_closes_expired_period_and_expires_drafts(db_session, make_region, make_school, make_period, make_report):
    region = make_region("North")
    period = _expired_period(make_period, "First Term")
    make_report(make_school("A", region), period, status="draft")
    make_report(make_school("B", region), period, status="draft")
    submitted = make_report(make_school("C", region), period, status="submitted", total_score=500)

    result = period_closer.close_expired_periods(db_session)

    assert result.processed_periods == [str(period.id)]
    assert result.expired_drafts_count == 2
    assert result.failed_periods == []

    db_session.expire_all()
    statuses = sorted(r.status for r in db_session.query(AssessmentReport).all())
    assert statuses == ["expired_draft", "expired_draft", "submitted"]
    assert db_session.get(AssessmentReport, submitted.id).status == "submitted"
    assert period.is_active is False


def test_second_run_is_a_no_op(db_session, make_school, make_period, make_report):
    period = _expired_period(make_period, "First Term")
    make_report(make_school("A"), period, status="draft")

    first = period_closer.close_expired_periods(db_session)
    second = period_closer.close_expired_periods(db_session)

    assert first.expired_drafts_count == 1
    assert second.expired_drafts_count == 0
    assert second.processed_periods == []


def test_open_periods_are_left_alone(db_session, make_school, make_period, make_report):
    period = make_period(term_name="Current Term")
    make_report(make_school("A"), period, status="draft")

    result = period_closer.close_expired_periods(db_session)

    assert result.processed_periods == []
    assert period.is_active is True


def test_failure_on_one_period_does_not_block_others(db_session, make_school, make_period, make_report, monkeypatch):
    broken = _expired_period(make_period, "First Term", days_ago=30)
    healthy = _expired_period(make_period, "Second Term", days_ago=1)
    make_report(make_school("A"), broken, status="draft")
    make_report(make_school("B"), healthy, status="draft")
    # The failed period is rolled back; seed data must survive it
    db_session.commit()

    original = period_closer.expire_period_drafts

    def flaky(db, period_id, now):
        if period_id == broken.id:
            raise SQLAlchemyError("connection reset")
        return original(db, period_id, now)

    monkeypatch.setattr(period_closer, "expire_period_drafts", flaky)

    result = period_closer.close_expired_periods(db_session)

    assert result.failed_periods == [str(broken.id)]
    assert result.processed_periods == [str(healthy.id)]
    assert result.expired_drafts_count == 1
