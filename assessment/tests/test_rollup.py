"""
Test scope statistics, trends and the bundled rollup output.
"""

from assessment.logic.constants import RollupScope, TrendMode
from assessment.logic.contracts import ReportSnapshot
from assessment.logic.rollup import build_rollup, compute_trend, percentile, summarize_scope
from assessment.logic.rubrics import GENERAL_THRESHOLDS


def _snap(school_id, total, region="r1", status="submitted", categories=None):
    return ReportSnapshot(
        report_id=f"rep-{school_id}",
        school_id=school_id,
        school_name=f"School {school_id}",
        region_id=region,
        region_name=f"Region {region}",
        status=status,
        total_score=total,
        category_scores=categories or {},
    )


def test_empty_scope_is_no_data():
    summary = summarize_scope(RollupScope.REGION, [], GENERAL_THRESHOLDS, scope_id="r1")

    assert summary.has_data is False
    assert summary.average_score is None
    assert summary.submitted_count == 0
    assert summary.rating_distribution["outstanding"] == 0


def test_only_submitted_reports_count():
    summary = summarize_scope(RollupScope.REGION, [
        _snap("1", 800, categories={"academic": 250}),
        _snap("2", 400, categories={"academic": 150}),
        _snap("3", 900, status="draft"),
    ], GENERAL_THRESHOLDS, total_schools=4)

    assert summary.has_data is True
    assert summary.submitted_count == 2
    assert summary.skipped_count == 1
    assert summary.average_score == 600
    assert summary.min_score == 400
    assert summary.max_score == 800
    assert summary.median_score == 600
    assert summary.submission_rate == 50.0
    assert summary.category_averages == {"academic": 200}
    assert summary.rating_distribution["very_good"] == 1
    assert summary.rating_distribution["satisfactory"] == 1


def test_percentile_interpolation():
    values = [100, 200, 300, 400]
    assert percentile(values, 25) == 175
    assert percentile(values, 50) == 250
    assert percentile(values, 75) == 325
    assert percentile([], 50) is None


def test_relative_trend():
    assert compute_trend("m", 104, 100).direction == "stable"
    assert compute_trend("m", 110, 100).direction == "improving"
    assert compute_trend("m", 90, 100).direction == "declining"

    from_zero = compute_trend("m", 5, 0)
    assert from_zero.direction == "improving"
    assert from_zero.change_percent == 100.0
    assert compute_trend("m", 0, 0).direction == "stable"


def test_absolute_trend():
    assert compute_trend("m", 515, 500, TrendMode.ABSOLUTE).direction == "stable"
    assert compute_trend("m", 525, 500, TrendMode.ABSOLUTE).direction == "improving"
    assert compute_trend("m", 5, 0, TrendMode.ABSOLUTE, dead_band=10).direction == "stable"


def test_missing_previous_value_is_unavailable():
    trend = compute_trend("m", 500, None)
    assert trend.available is False
    assert trend.direction is None
    assert trend.change is None


def test_rollup_without_prior_period():
    output = build_rollup(RollupScope.REGION, [_snap("1", 300), _snap("2", 650)], GENERAL_THRESHOLDS)

    assert output.summary.submitted_count == 2
    assert output.top_school.school_id == "2"
    assert output.at_risk_count == 1
    assert output.score_trend.available is False
    assert output.most_improved == []
    assert "No prior period data; trends unavailable" in output.warnings


def test_rollup_with_prior_period():
    current = [_snap("1", 650), _snap("2", 300), _snap("3", 700)]
    previous = [_snap("1", 500), _snap("2", 400)]

    output = build_rollup(RollupScope.REGION, current, GENERAL_THRESHOLDS, previous=previous)

    assert output.submission_trend.direction == "improving"
    assert output.score_trend.previous_value == 450
    assert output.most_improved[0].school_id == "1"
    assert output.most_improved[0].change == 150
    assert output.underperforming[0].school_id == "2"
    assert output.declining_count == 1
    assert output.warnings == []


def test_empty_rollup_warns():
    output = build_rollup(RollupScope.NATIONAL, [], GENERAL_THRESHOLDS, previous=[])
    assert output.summary.has_data is False
    assert output.top_school is None
    assert output.regions == []
    assert "No submitted reports in scope for this period" in output.warnings
    assert output.score_trend.available is False


def test_national_rollup_compares_regions():
    current = [
        _snap("1", 800, region="north"),
        _snap("2", 350, region="south"),
    ]
    output = build_rollup(
        RollupScope.NATIONAL,
        current,
        GENERAL_THRESHOLDS,
        schools_per_region={"north": 1, "south": 2, "east": 3},
        total_schools=6,
        days_until_deadline=3,
    )

    assert output.top_region.region_id == "north"
    assert output.lowest_region.region_id == "south"
    assert output.critical_regions_count == 1
    assert output.total_regions == 3
    assert output.near_deadline_count == 4
    assert output.overdue_count == 0


def test_region_rollup_national_rank():
    national = [
        _snap("1", 800, region="north"),
        _snap("2", 350, region="south"),
    ]
    output = build_rollup(
        RollupScope.REGION,
        [national[1]],
        GENERAL_THRESHOLDS,
        scope_id="south",
        national_reports=national,
        total_schools=3,
        days_until_deadline=-1,
    )
    assert output.national_rank == 2
    assert output.total_regions == 2
    assert output.overdue_count == 2


def test_region_rank_counts_regions_without_submissions():
    national = [
        _snap("1", 800, region="north"),
        _snap("2", 350, region="south"),
    ]
    output = build_rollup(
        RollupScope.REGION,
        [national[1]],
        GENERAL_THRESHOLDS,
        scope_id="south",
        national_reports=national,
        schools_per_region={"north": 1, "south": 1, "east": 4, "west": 0},
    )
    assert output.national_rank == 2
    assert output.total_regions == 4
