"""
Ranker

Ranks schools and regions by total score and computes per-school deltas
between two assessment periods.

Tie-break for equal totals: school name (case-insensitive), then school id.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .constants import (
    DEFAULT_DELTA_LIMIT,
    DECLINE_THRESHOLD_POINTS,
    CRITICAL_REGION_AVERAGE,
    CRITICAL_SUBMISSION_RATE,
)
from .contracts import (
    RankedSchool,
    RankingPosition,
    RatingThresholds,
    RegionStanding,
    ReportSnapshot,
    SchoolDelta,
)
from .classifier import classify_score
from .coercion import coerce_number, round_half_up


logger = logging.getLogger(__name__)


def report_total(report: ReportSnapshot) -> float:
    """Total score of a snapshot; unscored reports count as 0."""
    return coerce_number(report.total_score) or 0.0


def _ranking_key(report: ReportSnapshot) -> Tuple[float, str, str]:
    return (-report_total(report), report.school_name.lower(), report.school_id)


def latest_per_school(reports: Iterable[ReportSnapshot]) -> Dict[str, ReportSnapshot]:
    """
    Keep the most recently submitted report of each school.
    """
    latest: Dict[str, ReportSnapshot] = {}
    for report in reports:
        kept = latest.get(report.school_id)
        if kept is None or _submitted_order(report) > _submitted_order(kept):
            latest[report.school_id] = report
    return latest


def _submitted_order(report: ReportSnapshot) -> tuple:
    return (report.submitted_at or datetime.min, report.report_id)


# =============================================================================
# SCHOOL RANKING
# =============================================================================

def rank_reports(
    reports: Iterable[ReportSnapshot],
    thresholds: Optional[RatingThresholds] = None,
    limit: Optional[int] = None
) -> List[RankedSchool]:
    """
    Rank reports by total score (descending).

    Args:
        reports: Submitted report snapshots of one scope and period
        thresholds: When given, rating codes are derived from the totals
        limit: Optional maximum number of ranked entries

    Returns:
        RankedSchool list with 1-based ranks
    """
    ordered = sorted(reports, key=_ranking_key)
    if limit is not None:
        ordered = ordered[:limit]

    ranked = []
    for position, report in enumerate(ordered, start=1):
        total = report_total(report)
        rating_code = report.rating_code
        if thresholds is not None:
            rating_code = classify_score(total, thresholds).code
        ranked.append(RankedSchool(
            rank=position,
            school_id=report.school_id,
            school_name=report.school_name,
            region_id=report.region_id,
            region_name=report.region_name,
            total_score=total,
            rating_code=rating_code,
        ))
    return ranked


def ranking_position(
    reports: Iterable[ReportSnapshot],
    school_id: str
) -> RankingPosition:
    """
    Position of one school within a ranked scope.

    percentile = round((N - rank + 1) / N * 100). Rank and percentile are
    None when the school has no report in the scope.
    """
    ranked = rank_reports(reports)
    total_ranked = len(ranked)

    for entry in ranked:
        if entry.school_id == school_id:
            percentile = int(round_half_up((total_ranked - entry.rank + 1) / total_ranked * 100))
            return RankingPosition(
                school_id=school_id,
                rank=entry.rank,
                total_ranked=total_ranked,
                percentile=percentile,
                total_score=entry.total_score,
            )

    return RankingPosition(school_id=school_id, total_ranked=total_ranked)


# =============================================================================
# PERIOD-OVER-PERIOD DELTAS
# =============================================================================

def compute_school_deltas(
    current: Iterable[ReportSnapshot],
    previous: Iterable[ReportSnapshot]
) -> List[SchoolDelta]:
    """
    Per-school change in total score between two periods.

    Only schools with a report in both periods qualify; a school missing
    from either period is excluded rather than treated as 0.
    """
    current_latest = latest_per_school(current)
    previous_latest = latest_per_school(previous)

    deltas = []
    for school_id, report in current_latest.items():
        prior = previous_latest.get(school_id)
        if prior is None:
            continue
        current_score = report_total(report)
        previous_score = report_total(prior)
        change = current_score - previous_score
        change_percent = None
        if previous_score > 0:
            change_percent = round_half_up(change / previous_score * 100, 1)
        deltas.append(SchoolDelta(
            school_id=school_id,
            school_name=report.school_name or prior.school_name,
            region_name=report.region_name or prior.region_name,
            current_score=current_score,
            previous_score=previous_score,
            change=change,
            change_percent=change_percent,
        ))
    return deltas


def _delta_name_key(delta: SchoolDelta) -> Tuple[str, str]:
    return (delta.school_name.lower(), delta.school_id)


def select_most_improved(
    deltas: Iterable[SchoolDelta],
    limit: int = DEFAULT_DELTA_LIMIT
) -> List[SchoolDelta]:
    """Schools with a positive change, largest gain first."""
    improved = [d for d in deltas if d.change > 0]
    improved.sort(key=lambda d: (-d.change, *_delta_name_key(d)))
    return improved[:limit]


def select_underperforming(
    deltas: Iterable[SchoolDelta],
    limit: int = DEFAULT_DELTA_LIMIT
) -> List[SchoolDelta]:
    """Schools with a negative change, largest drop first."""
    declined = [d for d in deltas if d.change < 0]
    declined.sort(key=lambda d: (d.change, *_delta_name_key(d)))
    return declined[:limit]


def count_declining(
    deltas: Iterable[SchoolDelta],
    threshold: float = DECLINE_THRESHOLD_POINTS
) -> int:
    """Number of schools whose total dropped by more than `threshold` points."""
    return sum(1 for d in deltas if d.current_score < d.previous_score - threshold)


# =============================================================================
# REGION COMPARISON
# =============================================================================

def _region_averages(
    reports: Iterable[ReportSnapshot]
) -> Dict[str, Tuple[str, List[float]]]:
    regions: Dict[str, Tuple[str, List[float]]] = {}
    for report in reports:
        if not report.region_id:
            logger.debug(f"Report {report.report_id} has no region; left out of region comparison")
            continue
        _, scores = regions.setdefault(report.region_id, (report.region_name, []))
        scores.append(report_total(report))
    return regions


def _rank_regions(regions: Dict[str, Tuple[str, List[float]]]) -> List[Tuple[str, str, float, int]]:
    rows = [
        (region_id, name, round_half_up(sum(scores) / len(scores), 1), len(scores))
        for region_id, (name, scores) in regions.items()
    ]
    rows.sort(key=lambda row: (-row[2], row[1].lower(), row[0]))
    return rows


def compare_regions(
    current: Iterable[ReportSnapshot],
    previous: Optional[Iterable[ReportSnapshot]] = None,
    schools_per_region: Optional[Mapping[str, int]] = None,
    critical_average: float = CRITICAL_REGION_AVERAGE
) -> List[RegionStanding]:
    """
    Rank regions by the average total score of their submitted reports.

    Args:
        current: Submitted reports of the current period (all regions)
        previous: Submitted reports of the prior period, for rank changes
        schools_per_region: {region id: school count}, for submission rates
        critical_average: Average below which a region is flagged critical

    Returns:
        RegionStanding list, best region first. rank_change is positive
        when a region moved up.
    """
    schools_per_region = schools_per_region or {}
    previous_ranks: Dict[str, int] = {}
    if previous is not None:
        for position, row in enumerate(_rank_regions(_region_averages(previous)), start=1):
            previous_ranks[row[0]] = position

    standings = []
    for position, (region_id, name, average, count) in enumerate(
        _rank_regions(_region_averages(current)), start=1
    ):
        total_schools = schools_per_region.get(region_id)
        submission_rate = None
        if total_schools:
            submission_rate = round_half_up(count / total_schools * 100, 1)

        previous_rank = previous_ranks.get(region_id)
        standings.append(RegionStanding(
            region_id=region_id,
            region_name=name,
            average_score=average,
            submitted_count=count,
            total_schools=total_schools,
            submission_rate=submission_rate,
            is_critical=(
                average < critical_average
                or (submission_rate is not None and submission_rate < CRITICAL_SUBMISSION_RATE)
            ),
            rank=position,
            previous_rank=previous_rank,
            rank_change=(previous_rank - position) if previous_rank is not None else None,
        ))
    return standings
