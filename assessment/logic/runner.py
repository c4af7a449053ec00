"""
Engine Runner

Orchestrates the assessment pipeline against the database:
1. Loads reports, schools and periods via the adapter
2. Runs the assessment engine
3. Persists derived scores (category scores, total, rating) on the report
4. Returns engine output for the API layer

Scoring and rollup logic lives in the engine; this module only wires
database records to it.
"""

from datetime import datetime
from typing import Any, Mapping, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment.models import AssessmentPeriod, AssessmentReport
from .adapter import (
    count_schools,
    fetch_report,
    fetch_school,
    fetch_school_report,
    fetch_submitted_reports,
    get_region,
    school_track,
    schools_per_region,
)
from .aggregator import split_sections
from .classifier import identify_weak_categories
from .constants import ReportStatus, RollupScope, SchoolTrack
from .contracts import ReportScore, RollupOutput, SchoolStanding
from .engine import AssessmentEngine
from .lifecycle import check_editable, check_transition, submit
from .periods import (
    days_remaining,
    ensure_submission_open,
    get_active_period,
    get_period,
    get_previous_period,
)
from .ranker import ranking_position


default_engine = AssessmentEngine()


def _store_score(report: AssessmentReport, score: ReportScore) -> None:
    """Write derived scores back; total and rating always come from the engine."""
    report.category_scores = {c.category: c.score for c in score.category_scores}
    report.total_score = score.total_score
    report.rating_code = score.rating.code


def _resolve_period(db: Session, period_id: Optional[int]) -> AssessmentPeriod:
    """
    Raises:
        LookupError: If the period does not exist or no period is active
    """
    if period_id is not None:
        period = get_period(db, period_id)
        if period is None:
            raise LookupError(f"Assessment period {period_id} not found")
        return period

    period = get_active_period(db)
    if period is None:
        raise LookupError("No active assessment period")
    return period


def _resolve_previous(
    db: Session,
    period: AssessmentPeriod,
    previous_period_id: Optional[int]
) -> Optional[AssessmentPeriod]:
    if previous_period_id is not None:
        previous = get_period(db, previous_period_id)
        if previous is None:
            raise LookupError(f"Assessment period {previous_period_id} not found")
        return previous
    return get_previous_period(db, period)


def _get_report(db: Session, report_id: int) -> AssessmentReport:
    report = fetch_report(db, report_id)
    if report is None:
        raise LookupError(f"Assessment report {report_id} not found")
    return report


# =============================================================================
# REPORT SCORING & LIFECYCLE
# =============================================================================

def score_and_store_report(
    db: Session,
    report_id: int,
    engine: AssessmentEngine = default_engine
) -> ReportScore:
    """
    Recompute a draft report's scores from its stored answers and persist them.

    Submitted and expired reports keep the scores they were closed with.

    Args:
        db: Database session
        report_id: Assessment report id
        engine: Engine holding the track configurations

    Returns:
        ReportScore

    Raises:
        LookupError: If the report does not exist
        ReportLockedError: If the report is no longer a draft
    """
    import logging
    logger = logging.getLogger(__name__)

    report = _get_report(db, report_id)
    check_editable(report)
    track = school_track(report.school)

    score = engine.score_report(report.answers or {}, track)
    _store_score(report, score)
    db.flush()

    for warning in score.warnings:
        logger.warning(f"⚠️ Report {report_id}: {warning}")
    logger.info(
        f"📊 Scored report {report_id} ({track.value}): "
        f"{score.total_score}/{score.max_total} -> {score.rating.name}"
    )
    return score


def create_report(
    db: Session,
    school_id: int,
    period_id: Optional[int] = None,
    now: Optional[datetime] = None,
    engine: AssessmentEngine = default_engine
) -> AssessmentReport:
    """
    Open a draft report for a school in a period (defaults to the active one).

    Returns the existing report when the school already has one for the period.

    Raises:
        LookupError: If the school or period does not exist
        SubmissionWindowClosedError: If the period's window is closed
    """
    import logging
    logger = logging.getLogger(__name__)

    school = fetch_school(db, school_id)
    if school is None:
        raise LookupError(f"School {school_id} not found")

    period = get_period(db, period_id) if period_id is not None else get_active_period(db)
    if period_id is not None and period is None:
        raise LookupError(f"Assessment period {period_id} not found")
    ensure_submission_open(period, now)

    existing = fetch_school_report(db, school.id, period.id)
    if existing is not None:
        logger.info(f"📝 School {school_id} already has report {existing.id} for {period.display_name}")
        return existing

    report = AssessmentReport(
        school_id=school.id,
        period_id=period.id,
        status=ReportStatus.DRAFT.value,
        answers={},
    )
    _store_score(report, engine.score_report({}, school_track(school)))
    try:
        with db.begin_nested():
            db.add(report)
    except IntegrityError:
        # A concurrent request created it first
        existing = fetch_school_report(db, school.id, period.id)
        if existing is None:
            raise
        logger.info(f"📝 School {school_id} report {existing.id} was created concurrently; reusing it")
        return existing

    logger.info(f"📝 Created draft report {report.id} for school {school_id} ({period.display_name})")
    return report


def save_section_answers(
    db: Session,
    report_id: int,
    section: str,
    answers: Mapping[str, Any],
    now: Optional[datetime] = None,
    engine: AssessmentEngine = default_engine
) -> ReportScore:
    """
    Replace one category's raw answers on a draft report and rescore it.

    Raises:
        LookupError: If the report does not exist
        ReportLockedError: If the report is no longer a draft
        SubmissionWindowClosedError: If the period's window is closed
        ValueError: If the section is not a category of the school's track
    """
    report = _get_report(db, report_id)
    check_editable(report)
    ensure_submission_open(report.period, now)

    track_config = engine.config_for(school_track(report.school))
    sections, unknown = split_sections({section: dict(answers or {})}, track_config)
    if unknown:
        raise ValueError(f"Unknown section '{section}' for track '{track_config.track.value}'")

    merged = dict(report.answers or {})
    merged.update(sections)
    # Reassign so the JSON column is flagged dirty
    report.answers = merged
    db.flush()

    return score_and_store_report(db, report_id, engine)


def submit_report(
    db: Session,
    report_id: int,
    now: Optional[datetime] = None,
    engine: AssessmentEngine = default_engine
) -> ReportScore:
    """
    Submit a draft report: final rescore, status change, submitted_at stamp.

    Submitting an already submitted report is a no-op.

    Raises:
        LookupError: If the report does not exist
        ReportTransitionError: If the report is an expired draft
        SubmissionWindowClosedError: If the period's window is closed
    """
    import logging
    logger = logging.getLogger(__name__)

    report = _get_report(db, report_id)
    track = school_track(report.school)

    if ReportStatus(report.status) == ReportStatus.SUBMITTED:
        logger.info(f"ℹ️ Report {report_id} already submitted; nothing to do")
        return engine.rate_category_totals(report.category_scores or {}, track)

    check_transition(report.status, ReportStatus.SUBMITTED)
    ensure_submission_open(report.period, now)

    score = score_and_store_report(db, report_id, engine)
    submit(report, now)
    db.flush()

    logger.info(f"✅ Report {report_id} submitted at {report.submitted_at.isoformat()}")
    return score


# =============================================================================
# ROLLUPS
# =============================================================================

def run_regional_rollup(
    db: Session,
    region_id: int,
    period_id: Optional[int] = None,
    previous_period_id: Optional[int] = None,
    track: Union[SchoolTrack, str] = SchoolTrack.GENERAL,
    now: Optional[datetime] = None,
    engine: AssessmentEngine = default_engine
) -> RollupOutput:
    """
    Main entry point for a region's rollup.

    Args:
        db: Database session
        region_id: Region id
        period_id: Period to roll up (defaults to the active period)
        previous_period_id: Comparison period (defaults to the preceding period)
        track: Only schools scored under this track are included
        now: Reference time for deadline counts

    Returns:
        RollupOutput

    Raises:
        LookupError: If the region or a period does not exist
    """
    import logging
    logger = logging.getLogger(__name__)

    track = SchoolTrack(track)
    region = get_region(db, region_id)
    if region is None:
        raise LookupError(f"Region {region_id} not found")

    period = _resolve_period(db, period_id)
    previous = _resolve_previous(db, period, previous_period_id)

    logger.info(f"🚀 Regional rollup: {region.name} / {period.display_name} / {track.value}")

    current = fetch_submitted_reports(db, period.id, region_id=region.id, track=track)
    previous_reports = (
        fetch_submitted_reports(db, previous.id, region_id=region.id, track=track)
        if previous is not None else None
    )
    national = fetch_submitted_reports(db, period.id, track=track)

    output = engine.rollup(
        RollupScope.REGION,
        current,
        track,
        previous=previous_reports,
        scope_id=str(region.id),
        period_id=str(period.id),
        total_schools=count_schools(db, region_id=region.id, track=track),
        national_reports=national,
        schools_per_region=schools_per_region(db, track=track),
        days_until_deadline=days_remaining(period, now) if period.is_active else None,
    )

    logger.info(
        f"📦 Region {region.name}: {output.summary.submitted_count} submitted, "
        f"average {output.summary.average_score}"
    )
    return output


def run_national_rollup(
    db: Session,
    period_id: Optional[int] = None,
    previous_period_id: Optional[int] = None,
    track: Union[SchoolTrack, str] = SchoolTrack.GENERAL,
    now: Optional[datetime] = None,
    engine: AssessmentEngine = default_engine
) -> RollupOutput:
    """
    Main entry point for the national rollup, including region comparison.

    Raises:
        LookupError: If a period does not exist
    """
    import logging
    logger = logging.getLogger(__name__)

    track = SchoolTrack(track)
    period = _resolve_period(db, period_id)
    previous = _resolve_previous(db, period, previous_period_id)

    logger.info(f"🚀 National rollup: {period.display_name} / {track.value}")

    current = fetch_submitted_reports(db, period.id, track=track)
    previous_reports = (
        fetch_submitted_reports(db, previous.id, track=track)
        if previous is not None else None
    )
    per_region = schools_per_region(db, track=track)

    output = engine.rollup(
        RollupScope.NATIONAL,
        current,
        track,
        previous=previous_reports,
        period_id=str(period.id),
        total_schools=sum(per_region.values()) or count_schools(db, track=track),
        schools_per_region=per_region,
        days_until_deadline=days_remaining(period, now) if period.is_active else None,
    )

    logger.info(
        f"📦 National: {output.summary.submitted_count} submitted across "
        f"{output.total_regions} region(s), {output.critical_regions_count} critical"
    )
    return output


# =============================================================================
# SCHOOL STANDING
# =============================================================================

def get_school_standing(
    db: Session,
    school_id: int,
    period_id: Optional[int] = None,
    now: Optional[datetime] = None,
    engine: AssessmentEngine = default_engine
) -> SchoolStanding:
    """
    A school's own view: score, rating, positions, weak areas and trend.

    Only a submitted report counts; drafts leave has_report False.

    Raises:
        LookupError: If the school or period does not exist
    """
    school = fetch_school(db, school_id)
    if school is None:
        raise LookupError(f"School {school_id} not found")

    track = school_track(school)
    period = _resolve_period(db, period_id)

    standing = SchoolStanding(
        school_id=str(school.id),
        school_name=school.name,
        period_id=str(period.id),
        last_assessment_date=_last_submission(db, school.id),
        days_until_deadline=days_remaining(period, now) if period.is_active else None,
        total_schools_in_region=(
            count_schools(db, region_id=school.region_id, track=track)
            if school.region_id is not None else 0
        ),
    )

    report = fetch_school_report(db, school.id, period.id)
    if report is None or ReportStatus(report.status) != ReportStatus.SUBMITTED:
        return standing

    score = engine.rate_category_totals(report.category_scores or {}, track)
    standing.has_report = True
    standing.total_score = score.total_score
    standing.max_total = score.max_total
    standing.rating_code = score.rating.code
    standing.rating_name = score.rating.name
    standing.next_rating = score.next_rating
    standing.weak_categories = engine.weak_categories(score)
    standing.recommendations = engine.recommendations(score)

    ranked_categories = identify_weak_categories(score.category_scores, threshold=float("inf"))
    standing.lowest_category = ranked_categories[0] if ranked_categories else None

    if school.region_id is not None:
        regional = fetch_submitted_reports(db, period.id, region_id=school.region_id, track=track)
        standing.regional_position = ranking_position(regional, str(school.id))
    national = fetch_submitted_reports(db, period.id, track=track)
    standing.national_position = ranking_position(national, str(school.id))

    previous_total = None
    previous = get_previous_period(db, period)
    if previous is not None:
        previous_report = fetch_school_report(db, school.id, previous.id)
        if previous_report is not None and ReportStatus(previous_report.status) == ReportStatus.SUBMITTED:
            previous_total = previous_report.total_score
    standing.trend = engine.school_trend(score.total_score, previous_total)

    return standing


def _last_submission(db: Session, school_id: int) -> Optional[datetime]:
    return (
        db.query(func.max(AssessmentReport.submitted_at))
        .filter(
            AssessmentReport.school_id == school_id,
            AssessmentReport.status == ReportStatus.SUBMITTED.value,
        )
        .scalar()
    )
