"""
Test report status transitions.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from assessment.logic.lifecycle import (
    ReportLockedError,
    ReportTransitionError,
    can_transition,
    check_editable,
    expire,
    submit,
)


def _report(status="draft"):
    return SimpleNamespace(status=status, submitted_at=None)


def test_allowed_transitions():
    assert can_transition("draft", "submitted")
    assert can_transition("draft", "expired_draft")
    assert not can_transition("submitted", "draft")
    assert not can_transition("expired_draft", "submitted")
    assert not can_transition("submitted", "expired_draft")


def test_submit_is_idempotent():
    report = _report()
    stamp = datetime(2025, 3, 1, 9, 30)

    assert submit(report, now=stamp) is True
    assert report.status == "submitted"
    assert report.submitted_at == stamp

    assert submit(report, now=datetime(2025, 3, 2)) is False
    assert report.submitted_at == stamp


def test_expired_draft_cannot_be_submitted():
    report = _report("expired_draft")
    with pytest.raises(ReportTransitionError) as excinfo:
        submit(report)
    assert excinfo.value.target.value == "submitted"
    assert report.status == "expired_draft"


def test_expire():
    report = _report()
    assert expire(report) is True
    assert report.status == "expired_draft"
    assert expire(report) is False

    with pytest.raises(ReportTransitionError):
        expire(_report("submitted"))


def test_only_drafts_are_editable():
    check_editable(_report())
    with pytest.raises(ReportLockedError):
        check_editable(_report("submitted"))
    with pytest.raises(ReportLockedError):
        check_editable(_report("expired_draft"))
