"""
Test school ranking, period-over-period deltas and region comparison.
"""

from datetime import datetime

from assessment.logic.contracts import ReportSnapshot
from assessment.logic.ranker import (
    compare_regions,
    compute_school_deltas,
    count_declining,
    latest_per_school,
    rank_reports,
    ranking_position,
    select_most_improved,
    select_underperforming,
)
from assessment.logic.rubrics import GENERAL_THRESHOLDS


def _snap(school_id, total, name=None, region="r1", report_id=None, submitted_at=None):
    return ReportSnapshot(
        report_id=report_id or f"rep-{school_id}",
        school_id=school_id,
        school_name=name or f"School {school_id}",
        region_id=region,
        region_name=f"Region {region}",
        total_score=total,
        submitted_at=submitted_at,
    )


def test_rank_descending_with_name_tie_break():
    ranked = rank_reports([
        _snap("3", 600, "Cedar Primary"),
        _snap("1", 720, "Zion Primary"),
        _snap("2", 600, "acorn primary"),
    ])
    assert [r.school_id for r in ranked] == ["1", "2", "3"]
    assert [r.rank for r in ranked] == [1, 2, 3]


def test_rank_derives_rating_codes_and_limits():
    ranked = rank_reports([_snap("1", 860), _snap("2", 420), _snap("3", 100)], GENERAL_THRESHOLDS, limit=2)
    assert len(ranked) == 2
    assert ranked[0].rating_code == "outstanding"
    assert ranked[1].rating_code == "satisfactory"


def test_ranking_position_percentile():
    reports = [_snap(str(i), 100 * i) for i in range(1, 5)]

    top = ranking_position(reports, "4")
    assert top.rank == 1
    assert top.total_ranked == 4
    assert top.percentile == 100

    bottom = ranking_position(reports, "1")
    assert bottom.rank == 4
    assert bottom.percentile == 25

    missing = ranking_position(reports, "99")
    assert missing.rank is None
    assert missing.percentile is None
    assert missing.total_ranked == 4


def test_most_improved_delta():
    previous = [_snap("x", 500), _snap("y", 700), _snap("gone", 400)]
    current = [_snap("x", 650), _snap("y", 640), _snap("new", 900)]

    deltas = compute_school_deltas(current, previous)
    assert {d.school_id for d in deltas} == {"x", "y"}

    improved = select_most_improved(deltas)
    assert [d.school_id for d in improved] == ["x"]
    assert improved[0].change == 150
    assert improved[0].change_percent == 30.0

    underperforming = select_underperforming(deltas)
    assert [d.school_id for d in underperforming] == ["y"]
    assert underperforming[0].change == -60
    assert count_declining(deltas) == 1


def test_declining_needs_more_than_threshold():
    deltas = compute_school_deltas([_snap("a", 480)], [_snap("a", 500)])
    assert count_declining(deltas) == 0


def test_latest_report_per_school_wins():
    older = _snap("a", 300, report_id="1", submitted_at=datetime(2025, 1, 1))
    newer = _snap("a", 500, report_id="2", submitted_at=datetime(2025, 2, 1))
    assert latest_per_school([newer, older])["a"].total_score == 500


def test_compare_regions():
    current = [
        _snap("1", 800, region="north"),
        _snap("2", 600, region="north"),
        _snap("3", 300, region="south"),
    ]
    previous = [_snap("1", 200, region="north"), _snap("3", 500, region="south")]

    regions = compare_regions(current, previous, schools_per_region={"north": 2, "south": 5})
    assert [r.region_id for r in regions] == ["north", "south"]

    north, south = regions
    assert north.average_score == 700
    assert north.submission_rate == 100.0
    assert north.previous_rank == 2
    assert north.rank_change == 1
    assert not north.is_critical

    assert south.average_score == 300
    assert south.submission_rate == 20.0
    assert south.rank_change == -1
    assert south.is_critical
