"""
Test category scoring: normalizers, gates, boundary validation and bounds.
"""

from assessment.logic.category_scorers import score_category, validate_answers
from assessment.logic.contracts import CategoryRubric, ScoringItem
from assessment.logic.rubrics import GENERAL_TRACK, TAPS_TRACK


def _rubric(track, name):
    return track.category(name)


def _weighted_rubric(max_score):
    return CategoryRubric(
        name="custom",
        label="Custom",
        max_score=max_score,
        items=(
            ScoringItem(key="quality", max_points=40, kind="fraction"),
            ScoringItem(key="safety", max_points=60, kind="fraction"),
        ),
    )


def test_weighted_sum_of_items():
    scored = score_category({"quality": 1.0, "safety": 0.5}, _weighted_rubric(100))
    assert scored.score == 70
    assert scored.percentage == 70.0


def test_score_is_capped_at_category_maximum():
    scored = score_category({"quality": 1.0, "safety": 0.5}, _weighted_rubric(50))
    assert scored.score == 50


def test_full_marks_teaching_quality():
    answers = {
        "percentage_qualified_teachers": 100,
        "percentage_trained_teachers": 100,
        "teacher_student_ratio": 15,
        "pd_sessions_attended": 5,
        "pd_hours_completed": 20,
        "in_house_training_sessions": 3,
        "lesson_plans_submitted": 100,
        "lesson_plan_quality": 5,
        "scheme_of_work_completion": 100,
        "differentiated_instruction": 5,
        "technology_integration": 5,
        "assessment_for_learning": 5,
    }
    scored = score_category(answers, _rubric(GENERAL_TRACK, "teaching_quality"))
    assert scored.score == 150
    assert scored.percentage == 100.0
    assert scored.missing_items == []


def test_camel_case_answers_are_scored():
    scored = score_category(
        {"percentageQualifiedTeachers": 80},
        _rubric(GENERAL_TRACK, "teaching_quality"),
    )
    assert scored.score == 20
    assert scored.unknown_items == []


def test_missing_category_scores_zero():
    rubric = _rubric(GENERAL_TRACK, "student_welfare")
    assert score_category(None, rubric).score == 0
    assert score_category({}, rubric).score == 0


def test_non_map_answers_score_zero():
    rubric = _rubric(GENERAL_TRACK, "student_welfare")
    assert score_category("not-a-map", rubric).score == 0
    assert score_category(["garbage"], rubric).score == 0


def test_special_needs_baseline_without_enrolment():
    rubric = _rubric(GENERAL_TRACK, "student_welfare")
    scored = score_category({"discipline_policy_implemented": True}, rubric)
    # Policy (8) plus the baseline award (6)
    assert scored.score == 14


def test_special_needs_support_with_enrolment():
    rubric = _rubric(GENERAL_TRACK, "student_welfare")
    supported = score_category({
        "discipline_policy_implemented": True,
        "specialNeedsStudentsEnrolled": 3,
        "special_needs_support_provided": True,
    }, rubric)
    unsupported = score_category({
        "discipline_policy_implemented": True,
        "special_needs_students_enrolled": 3,
        "special_needs_support_provided": "no",
    }, rubric)

    assert supported.score == 20
    assert unsupported.score == 8
    assert supported.unknown_items == []


def test_inverse_count():
    rubric = _rubric(GENERAL_TRACK, "student_welfare")
    # Both include the special needs baseline (6)
    assert score_category({"disciplinary_incidents": 0}, rubric).score == 16
    assert score_category({"disciplinary_incidents": 30}, rubric).score == 6


def test_gated_items_need_their_gate():
    rubric = _rubric(GENERAL_TRACK, "infrastructure")
    closed = score_category(
        {"library_exists": False, "library_book_count": 500, "library_condition": 5}, rubric
    )
    opened = score_category(
        {"library_exists": "yes", "library_book_count": 500, "library_condition": 5}, rubric
    )
    assert closed.score == 0
    assert opened.score == 25


def test_nested_taps_grade_answers():
    scored = score_category(
        {"grade7": {"overallPassRate": 85, "above70Percent": 85}},
        _rubric(TAPS_TRACK, "academics"),
    )
    assert scored.score == 16


def test_bands_and_select_options():
    leadership = score_category({
        "projectPlanProgress": "Excellent",
        "hmAttendanceRate": 92,
        "leadershipTeamAttendance": 70,
    }, _rubric(TAPS_TRACK, "leadership"))
    assert leadership.score == 20

    health = score_category({
        "student_incidence_rate": 0,
        "teacher_disciplinary_rate": 12,
        "fire_safety_level": "each_classroom",
        "evacuation_drill_frequency": "monthly",
        "potable_water_access": "unheard_of",
    }, _rubric(TAPS_TRACK, "health_safety"))
    assert health.score == 28


def test_unknown_keys_are_reported_not_scored():
    scored = score_category(
        {"foo_bar": 1, "community_events_hosted": 3},
        _rubric(GENERAL_TRACK, "community"),
    )
    assert scored.unknown_items == ["foo_bar"]
    assert scored.score == 12


def test_malformed_values_count_as_missing():
    scored = score_category({"community_events_hosted": "lots"}, _rubric(GENERAL_TRACK, "community"))
    assert scored.score == 0
    assert "community_events_hosted" in scored.missing_items


def test_validate_answers_coerces_once():
    answer_set = validate_answers(
        {"libraryExists": "yes", "library_book_count": "250"},
        _rubric(GENERAL_TRACK, "infrastructure"),
    )
    assert answer_set.values["library_exists"] is True
    assert answer_set.values["library_book_count"] == 250.0
    assert "library_condition" in answer_set.missing_keys


def test_scores_stay_within_bounds():
    for track in (GENERAL_TRACK, TAPS_TRACK):
        for rubric in track.categories:
            for value in (10 ** 6, -50, 0, "junk", True):
                answers = {key: value for key in rubric.answer_keys}
                scored = score_category(answers, rubric)
                assert 0 <= scored.score <= rubric.max_score, (rubric.name, value)
