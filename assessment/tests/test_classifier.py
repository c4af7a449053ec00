"""
Test rating classification, points to next rating and weak categories.
"""

import pytest
from pydantic import ValidationError

from assessment.logic.classifier import (
    classify_score,
    identify_weak_categories,
    points_to_next_rating,
    rating_distribution,
)
from assessment.logic.contracts import CategoryScore, RatingThresholds, RatingTier
from assessment.logic.rubrics import GENERAL_THRESHOLDS, TAPS_THRESHOLDS


GRADES = RatingThresholds.from_minimums({"A": 850, "B": 700, "C": 550, "D": 400})


def test_classify_and_next_rating():
    assert classify_score(720, GRADES).code == "B"

    next_rating = points_to_next_rating(720, GRADES)
    assert next_rating.points_to_next_rating == 130
    assert next_rating.next_rating_name == "Grade A"


def test_top_tier_has_no_next_rating():
    next_rating = points_to_next_rating(900, GRADES)
    assert next_rating.points_to_next_rating == 0
    assert next_rating.next_rating_name is None


def test_boundaries_belong_to_the_higher_tier():
    assert classify_score(850, GRADES).code == "A"
    assert classify_score(849.9, GRADES).code == "B"
    assert classify_score(850, GENERAL_THRESHOLDS).code == "outstanding"
    assert classify_score(357, TAPS_THRESHOLDS).name == "Grade A"
    assert classify_score(356, TAPS_THRESHOLDS).name == "Grade B"


def test_scores_below_every_tier_fall_through_to_lowest():
    assert classify_score(100, GRADES).code == "D"
    assert classify_score(-5, GRADES).code == "D"
    assert points_to_next_rating(100, GRADES).points_to_next_rating == 450
    assert points_to_next_rating(100, GRADES).next_rating_name == "Grade C"


def test_points_to_next_rating_is_positive_below_top():
    for total in (0, 399, 400, 551.5, 699, 849):
        info = points_to_next_rating(total, GENERAL_THRESHOLDS)
        assert info.points_to_next_rating > 0
        assert info.next_rating_name is not None


def test_thresholds_are_validated_and_sorted():
    shuffled = RatingThresholds(tiers=(
        RatingTier(code="low", name="Low", min_score=0),
        RatingTier(code="high", name="High", min_score=80),
        RatingTier(code="mid", name="Mid", min_score=40),
    ))
    assert [t.code for t in shuffled.tiers] == ["low", "mid", "high"]
    assert shuffled.highest.code == "high"

    with pytest.raises(ValidationError):
        RatingThresholds(tiers=())
    with pytest.raises(ValidationError):
        RatingThresholds.from_minimums({"A": 10, "B": 10})


def test_thresholds_are_immutable():
    with pytest.raises(ValidationError):
        GENERAL_THRESHOLDS.tiers = ()


def test_rating_distribution_lists_every_tier():
    distribution = rating_distribution([900, 720, 720, 100], GRADES)
    assert distribution == {"A": 1, "B": 2, "C": 0, "D": 1}
    assert list(distribution) == ["A", "B", "C", "D"]


def test_weak_categories_sorted_weakest_first():
    scores = [
        CategoryScore(category="academic", score=90, max_score=300),
        CategoryScore(category="attendance", score=120, max_score=150),
        CategoryScore(category="community", score=25, max_score=50),
    ]
    weak = identify_weak_categories(scores)

    assert [w.category for w in weak] == ["academic", "community"]
    assert weak[0].priority == "high"
    assert weak[0].percentage == 30
    assert weak[1].priority == "medium"


def test_weak_category_threshold_is_configurable():
    scores = [CategoryScore(category="attendance", score=120, max_score=150)]
    assert identify_weak_categories(scores) == []
    assert len(identify_weak_categories(scores, threshold=90)) == 1


def test_weakest_category_uses_exact_ratio():
    scores = [
        CategoryScore(category="academic", score=52, max_score=500),
        CategoryScore(category="welfare", score=51, max_score=500),
    ]
    weak = identify_weak_categories(scores)

    # Both round to 10 %
    assert [w.percentage for w in weak] == [10, 10]
    assert [w.category for w in weak] == ["welfare", "academic"]
