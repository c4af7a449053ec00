"""
Rollup Engine

Scope-level (regional / national) statistics over the submitted reports
of one assessment period, with trend comparison against a prior period.

An empty scope is reported as "no data" (has_data=False, average None),
never as a zero average. A missing prior period yields an unavailable
trend, never a fabricated zero delta.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .constants import (
    ReportStatus,
    RollupScope,
    TrendDirection,
    TrendMode,
    PERCENTILE_POINTS,
    TREND_RELATIVE_DEAD_BAND,
    TREND_ABSOLUTE_DEAD_BAND,
    DEFAULT_RANKING_LIMIT,
    DEFAULT_DELTA_LIMIT,
    NEAR_DEADLINE_DAYS,
)
from .contracts import (
    RatingThresholds,
    ReportSnapshot,
    RollupOutput,
    ScopeSummary,
    TrendResult,
)
from .classifier import classify_score, rating_distribution
from .coercion import coerce_number, round_half_up
from .ranker import (
    compare_regions,
    compute_school_deltas,
    count_declining,
    rank_reports,
    report_total,
    select_most_improved,
    select_underperforming,
)


logger = logging.getLogger(__name__)


# =============================================================================
# STATISTICS
# =============================================================================

def submitted_only(reports: Iterable[ReportSnapshot]) -> List[ReportSnapshot]:
    return [r for r in reports if ReportStatus(r.status) == ReportStatus.SUBMITTED]


def percentile(values: Sequence[float], point: float) -> Optional[float]:
    """
    Linear-interpolated percentile (0-100) of a list of values.

    Returns None for an empty list.
    """
    if not values:
        return None
    ordered = sorted(values)
    rank = (len(ordered) - 1) * point / 100
    lower = math.floor(rank)
    upper = min(lower + 1, len(ordered) - 1)
    value = ordered[lower] + (ordered[upper] - ordered[lower]) * (rank - lower)
    return round_half_up(value, 1)


def category_averages(reports: Iterable[ReportSnapshot]) -> Dict[str, float]:
    """Mean score per category over the reports that recorded it."""
    sums: Dict[str, List[float]] = {}
    for report in reports:
        for category, raw in report.category_scores.items():
            value = coerce_number(raw)
            if value is None:
                continue
            sums.setdefault(category, []).append(value)
    return {
        category: round_half_up(sum(values) / len(values), 1)
        for category, values in sorted(sums.items())
    }


def summarize_scope(
    scope: Union[RollupScope, str],
    reports: Iterable[ReportSnapshot],
    thresholds: RatingThresholds,
    scope_id: Optional[str] = None,
    period_id: Optional[str] = None,
    total_schools: Optional[int] = None
) -> ScopeSummary:
    """
    Aggregate statistics over the submitted reports of one scope.

    Reports in any other status are skipped and counted.

    Args:
        scope: region or national
        reports: Report snapshots of the scope for one period
        thresholds: Rating table used for the tier distribution
        scope_id: Region id (region scope)
        period_id: Assessment period id
        total_schools: School count of the scope, for the submission rate

    Returns:
        ScopeSummary
    """
    reports = list(reports)
    submitted = submitted_only(reports)
    skipped = len(reports) - len(submitted)
    if skipped:
        logger.debug(f"Skipped {skipped} non-submitted report(s) in {RollupScope(scope).value} rollup")

    submission_rate = None
    if total_schools:
        submission_rate = round_half_up(len(submitted) / total_schools * 100, 1)

    totals = [report_total(r) for r in submitted]
    summary = ScopeSummary(
        scope=scope,
        scope_id=scope_id,
        period_id=period_id,
        has_data=bool(submitted),
        submitted_count=len(submitted),
        skipped_count=skipped,
        total_schools=total_schools,
        submission_rate=submission_rate,
        rating_distribution=rating_distribution(totals, thresholds),
    )
    if not submitted:
        return summary

    summary.average_score = round_half_up(sum(totals) / len(totals), 1)
    summary.min_score = min(totals)
    summary.max_score = max(totals)
    summary.median_score = percentile(totals, 50)
    summary.percentiles = {point: percentile(totals, point) for point in PERCENTILE_POINTS}
    summary.category_averages = category_averages(submitted)
    return summary


# =============================================================================
# TRENDS
# =============================================================================

def compute_trend(
    metric: str,
    current: Optional[float],
    previous: Optional[float],
    mode: Union[TrendMode, str] = TrendMode.RELATIVE,
    dead_band: Optional[float] = None
) -> TrendResult:
    """
    Classify the change of a metric between two periods.

    - relative: percentage change, stable within +/- dead_band percent (5)
    - absolute: point change, stable within +/- dead_band points (20)

    A missing value on either side makes the trend unavailable.
    In relative mode a rise from 0 is improving, 0 to 0 is stable.
    """
    mode = TrendMode(mode)
    if dead_band is None:
        dead_band = TREND_RELATIVE_DEAD_BAND if mode == TrendMode.RELATIVE else TREND_ABSOLUTE_DEAD_BAND

    if current is None or previous is None:
        return TrendResult(metric=metric, mode=mode, available=False,
                           current_value=current, previous_value=previous)

    change = current - previous
    change_percent = None
    if previous != 0:
        change_percent = round_half_up(change / abs(previous) * 100, 1)
    elif current > 0:
        change_percent = 100.0
    elif current == 0:
        change_percent = 0.0

    measured = change_percent if mode == TrendMode.RELATIVE else change
    if measured is None:
        direction = TrendDirection.DECLINING if change < 0 else TrendDirection.STABLE
    elif measured > dead_band:
        direction = TrendDirection.IMPROVING
    elif measured < -dead_band:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    return TrendResult(
        metric=metric,
        mode=mode,
        available=True,
        direction=direction,
        current_value=current,
        previous_value=previous,
        change=change,
        change_percent=change_percent,
    )


# =============================================================================
# ROLLUP
# =============================================================================

def _deadline_counts(
    days_until_deadline: Optional[int],
    total_schools: Optional[int],
    submitted_count: int
) -> tuple:
    """(overdue, near deadline) counts of schools that have not submitted."""
    if days_until_deadline is None or not total_schools:
        return 0, 0
    pending = max(total_schools - submitted_count, 0)
    if days_until_deadline < 0:
        return pending, 0
    if days_until_deadline <= NEAR_DEADLINE_DAYS:
        return 0, pending
    return 0, 0


def build_rollup(
    scope: Union[RollupScope, str],
    current: Iterable[ReportSnapshot],
    thresholds: RatingThresholds,
    previous: Optional[Iterable[ReportSnapshot]] = None,
    scope_id: Optional[str] = None,
    period_id: Optional[str] = None,
    total_schools: Optional[int] = None,
    schools_per_region: Optional[Mapping[str, int]] = None,
    national_reports: Optional[Iterable[ReportSnapshot]] = None,
    days_until_deadline: Optional[int] = None,
    ranking_limit: int = DEFAULT_RANKING_LIMIT,
    delta_limit: int = DEFAULT_DELTA_LIMIT
) -> RollupOutput:
    """
    Build the complete rollup of one scope and period.

    Args:
        scope: region or national
        current: Report snapshots of the current period
        thresholds: Rating table used for ratings and distribution
        previous: Report snapshots of the prior period (None = no prior period)
        scope_id: Region id (region scope)
        period_id: Current period id
        total_schools: School count of the scope
        schools_per_region: {region id: school count}; every region counts towards total_regions
        national_reports: All current-period snapshots, for a region's national rank
        days_until_deadline: Days left in the submission window
        ranking_limit: Maximum ranked schools returned
        delta_limit: Maximum most-improved / underperforming schools

    Returns:
        RollupOutput
    """
    scope = RollupScope(scope)
    current = list(current)
    submitted = submitted_only(current)
    warnings: List[str] = []

    summary = summarize_scope(scope, current, thresholds, scope_id, period_id, total_schools)
    if not summary.has_data:
        warnings.append("No submitted reports in scope for this period")

    output = RollupOutput(
        summary=summary,
        rankings=rank_reports(submitted, thresholds, limit=ranking_limit),
        submission_trend=compute_trend("submitted_count", len(submitted), None),
        score_trend=compute_trend("average_score", summary.average_score, None),
    )
    output.top_school = output.rankings[0] if output.rankings else None
    output.at_risk_count = sum(
        1 for r in submitted
        if classify_score(report_total(r), thresholds).code == thresholds.lowest.code
    )
    output.overdue_count, output.near_deadline_count = _deadline_counts(
        days_until_deadline, total_schools, len(submitted)
    )

    previous_submitted: Optional[List[ReportSnapshot]] = None
    if previous is None:
        warnings.append("No prior period data; trends unavailable")
    else:
        previous_submitted = submitted_only(previous)
        previous_summary = summarize_scope(scope, previous_submitted, thresholds)
        output.submission_trend = compute_trend(
            "submitted_count", len(submitted), len(previous_submitted)
        )
        output.score_trend = compute_trend(
            "average_score", summary.average_score, previous_summary.average_score
        )

        deltas = compute_school_deltas(submitted, previous_submitted)
        output.most_improved = select_most_improved(deltas, delta_limit)
        output.underperforming = select_underperforming(deltas, delta_limit)
        output.declining_count = count_declining(deltas)

    if scope == RollupScope.NATIONAL:
        output.regions = compare_regions(submitted, previous_submitted, schools_per_region)
        if output.regions:
            output.top_region = output.regions[0]
            output.lowest_region = output.regions[-1]
        output.critical_regions_count = sum(1 for r in output.regions if r.is_critical)
        output.total_regions = len(schools_per_region) if schools_per_region else len(output.regions)
    elif national_reports is not None:
        standings = compare_regions(submitted_only(national_reports))
        output.total_regions = len(schools_per_region) if schools_per_region else len(standings)
        for standing in standings:
            if standing.region_id == scope_id:
                output.national_rank = standing.rank

    output.warnings = warnings
    return output
