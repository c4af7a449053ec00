"""
Data Adapter for the Assessment Engine

Reads assessment reports, schools and regions from the production tables
and transforms them into ReportSnapshot records for the rollup engine.

This is a pure READ + TRANSFORM layer:
- NO scoring logic
- NO ranking/classification
- NO DB writes
"""

from typing import Dict, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from assessment.models import AssessmentReport, Region, School
from .constants import ReportStatus, SchoolTrack, SCHOOL_TYPE_TRACK_MAP
from .contracts import ReportSnapshot
from .rubrics import track_for_school_type


def _school_types_for(track: Union[SchoolTrack, str]) -> List[str]:
    """School type values stored for schools scored under a track."""
    track = SchoolTrack(track)
    return [school_type for school_type, mapped in SCHOOL_TYPE_TRACK_MAP.items() if mapped == track]


def _track_condition(track: Union[SchoolTrack, str]):
    if SchoolTrack(track) == SchoolTrack.GENERAL:
        # Unknown school types score as general
        return ~func.lower(School.school_type).in_(_school_types_for(SchoolTrack.TAPS))
    return func.lower(School.school_type).in_(_school_types_for(track))


def _track_filter(query, track: Optional[Union[SchoolTrack, str]]):
    if track is None:
        return query
    return query.filter(_track_condition(track))


def school_track(school: School) -> SchoolTrack:
    return track_for_school_type(school.school_type)


def to_snapshot(report: AssessmentReport) -> ReportSnapshot:
    """
    Transform an ORM report (with its school and region loaded) into a snapshot.

    Args:
        report: AssessmentReport row

    Returns:
        ReportSnapshot with string ids
    """
    school = report.school
    region = school.region if school is not None else None

    category_scores: Dict[str, float] = {}
    for name, value in (report.category_scores or {}).items():
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            category_scores[name] = float(value)

    return ReportSnapshot(
        report_id=str(report.id),
        school_id=str(report.school_id),
        school_name=school.name if school is not None else "",
        region_id=str(school.region_id) if school is not None and school.region_id is not None else None,
        region_name=region.name if region is not None else "",
        period_id=str(report.period_id),
        track=school_track(school) if school is not None else SchoolTrack.GENERAL,
        status=ReportStatus(report.status),
        total_score=report.total_score,
        rating_code=report.rating_code,
        category_scores=category_scores,
        submitted_at=report.submitted_at,
    )


def fetch_report(db: Session, report_id: int) -> Optional[AssessmentReport]:
    return (
        db.query(AssessmentReport)
        .options(joinedload(AssessmentReport.school).joinedload(School.region))
        .filter(AssessmentReport.id == report_id)
        .first()
    )


def fetch_school(db: Session, school_id: int) -> Optional[School]:
    return (
        db.query(School)
        .options(joinedload(School.region))
        .filter(School.id == school_id)
        .first()
    )


def fetch_school_report(db: Session, school_id: int, period_id: int) -> Optional[AssessmentReport]:
    return (
        db.query(AssessmentReport)
        .filter(
            AssessmentReport.school_id == school_id,
            AssessmentReport.period_id == period_id,
        )
        .first()
    )


def fetch_submitted_reports(
    db: Session,
    period_id: int,
    region_id: Optional[int] = None,
    track: Optional[Union[SchoolTrack, str]] = None
) -> List[ReportSnapshot]:
    """
    Fetch the submitted reports of one period as snapshots.

    Args:
        db: Database session
        period_id: Assessment period id
        region_id: Restrict to one region (None = national)
        track: Restrict to schools scored under one track

    Returns:
        List of ReportSnapshot
    """
    query = (
        db.query(AssessmentReport)
        .join(School, AssessmentReport.school_id == School.id)
        .options(joinedload(AssessmentReport.school).joinedload(School.region))
        .filter(
            AssessmentReport.period_id == period_id,
            AssessmentReport.status == ReportStatus.SUBMITTED.value,
        )
    )
    if region_id is not None:
        query = query.filter(School.region_id == region_id)
    query = _track_filter(query, track)

    return [to_snapshot(report) for report in query.order_by(AssessmentReport.id.asc()).all()]


def count_schools(
    db: Session,
    region_id: Optional[int] = None,
    track: Optional[Union[SchoolTrack, str]] = None
) -> int:
    query = db.query(func.count(School.id))
    if region_id is not None:
        query = query.filter(School.region_id == region_id)
    query = _track_filter(query, track)
    return int(query.scalar() or 0)


def schools_per_region(
    db: Session,
    track: Optional[Union[SchoolTrack, str]] = None
) -> Dict[str, int]:
    """{region id: school count}, including regions without schools of the track."""
    join_on = School.region_id == Region.id
    if track is not None:
        # Schools outside the track leave the count, not the region
        join_on = join_on & _track_condition(track)

    rows = (
        db.query(Region.id, func.count(School.id))
        .outerjoin(School, join_on)
        .group_by(Region.id)
        .all()
    )
    return {str(region_id): int(count) for region_id, count in rows}


def get_region(db: Session, region_id: int) -> Optional[Region]:
    return db.query(Region).filter(Region.id == region_id).first()
