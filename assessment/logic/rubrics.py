"""
Scoring Rubrics

Static weighting tables for both school tracks, built once at import time
as frozen track configs:
- GENERAL: primary / nursery schools, 7 categories, max 1000 points
- TAPS: secondary schools (Termly Accountability Performance), 6 categories

Misconfigured tables fail at import with a pydantic ValidationError.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Union

from .constants import (
    SchoolTrack,
    SCHOOL_TYPE_TRACK_MAP,
    PERCENTAGE_BANDS,
    COUNT_BANDS,
    LOWER_IS_BETTER_BANDS,
)
from .contracts import (
    ScoringItem,
    CategoryRubric,
    RatingTier,
    RatingThresholds,
    TrackConfig,
)


def _item(key: str, points: float, kind: str = "percentage", **params) -> ScoringItem:
    return ScoringItem(key=key, max_points=points, kind=kind, **params)


def _band(key: str, table: str, points: float = 10) -> ScoringItem:
    if table in LOWER_IS_BETTER_BANDS:
        return _item(key, points, "band_lower", bands=LOWER_IS_BETTER_BANDS[table])
    bands = PERCENTAGE_BANDS.get(table) or COUNT_BANDS[table]
    return _item(key, points, "band_higher", bands=bands)


# =============================================================================
# GENERAL TRACK (PRIMARY / NURSERY) - 1000 POINTS
# =============================================================================

GENERAL_ACADEMIC = CategoryRubric(
    name="academic",
    label="Academic Performance",
    max_score=300,
    items=(
        # Grade 6 assessment pass rates (80)
        _item("grade6_math_pass_rate", 26.67),
        _item("grade6_english_pass_rate", 26.67),
        _item("grade6_science_pass_rate", 26.66),
        # CSEC results (80)
        _item("csec_pass_rate", 50),
        _item("csec_subjects_passed", 30, "count", target=6),
        # Internal assessments (60)
        _item("termly_assessment_completion", 40),
        _item("assessment_quality", 20, "scale"),
        # Subject diversity (40)
        _item("core_subjects_covered", 20, "count", target=8),
        _item("elective_subjects_offered", 20, "count", target=4),
        # Literacy & numeracy programs (40)
        _item("literacy_program_implementation", 20, "scale"),
        _item("numeracy_program_implementation", 20, "scale"),
    ),
)

GENERAL_ATTENDANCE = CategoryRubric(
    name="attendance",
    label="Attendance",
    max_score=150,
    items=(
        _item("student_attendance_rate", 50),
        _item("student_absenteeism_rate", 20, "inverse_percentage"),
        _item("teacher_attendance_rate", 35),
        _item("teacher_absenteeism_rate", 15, "inverse_percentage"),
        _item("student_punctuality_rate", 15),
        _item("teacher_punctuality_rate", 15),
    ),
)

GENERAL_INFRASTRUCTURE = CategoryRubric(
    name="infrastructure",
    label="Infrastructure",
    max_score=150,
    items=(
        # Classrooms (40)
        _item("classroom_condition", 15, "scale"),
        _item("classroom_capacity_adequacy", 15, "scale"),
        _item("furniture_condition", 10, "scale"),
        # Sanitation (30)
        _item("washroom_condition", 12, "scale"),
        _item("washroom_student_ratio", 10, "inverse_ratio", floor=10, ceiling=40),
        _item("water_supply_adequacy", 8, "scale"),
        # Library (25)
        _item("library_exists", 10, "boolean"),
        _item("library_book_count", 8, "count", target=500, requires="library_exists"),
        _item("library_condition", 7, "scale", requires="library_exists"),
        # Technology (30)
        _item("computer_lab_exists", 8, "boolean"),
        _item("computer_count", 8, "count", target=20, requires="computer_lab_exists"),
        _item("internet_access", 8, "boolean"),
        _item("projector_count", 6, "count", target=3),
        # Safety (25)
        _item("fire_extinguishers", 6, "count", target=4),
        _item("first_aid_kit_available", 6, "boolean"),
        _item("emergency_exits_adequate", 6, "boolean"),
        _item("playground_safety", 7, "scale"),
    ),
)

GENERAL_TEACHING_QUALITY = CategoryRubric(
    name="teaching_quality",
    label="Teaching Quality",
    max_score=150,
    items=(
        # Qualified teachers (50)
        _item("percentage_qualified_teachers", 25),
        _item("percentage_trained_teachers", 15),
        _item("teacher_student_ratio", 10, "inverse_ratio", floor=15, ceiling=35),
        # Professional development (40)
        _item("pd_sessions_attended", 15, "count", target=5),
        _item("pd_hours_completed", 15, "count", target=20),
        _item("in_house_training_sessions", 10, "count", target=3),
        # Lesson planning (30)
        _item("lesson_plans_submitted", 12),
        _item("lesson_plan_quality", 10, "scale"),
        _item("scheme_of_work_completion", 8),
        # Teaching methods (30)
        _item("differentiated_instruction", 10, "scale"),
        _item("technology_integration", 10, "scale"),
        _item("assessment_for_learning", 10, "scale"),
    ),
)

GENERAL_MANAGEMENT = CategoryRubric(
    name="management",
    label="Management",
    max_score=100,
    items=(
        # SBA meetings (25)
        _item("sba_meetings_held", 10, "count", target=3),
        _item("sba_meeting_minutes_recorded", 7, "boolean"),
        _item("sba_decisions_implemented", 8),
        # Parent engagement (25)
        _item("pta_meetings_held", 8, "count", target=2),
        _item("parent_attendance_rate", 10),
        _item("parent_volunteer_programs", 7, "boolean"),
        # Budget management (25)
        _item("budget_utilization_rate", 10),
        _item("financial_records_up_to_date", 8, "boolean"),
        _item("audit_compliance", 7, "boolean"),
        # Record keeping (25)
        _item("student_records_complete", 10),
        _item("staff_records_complete", 8),
        _item("inventory_records_complete", 7),
    ),
)

GENERAL_STUDENT_WELFARE = CategoryRubric(
    name="student_welfare",
    label="Student Welfare",
    max_score=100,
    items=(
        # Guidance services (30)
        _item("guidance_counselor_available", 12, "boolean"),
        _item("counseling_sessions_provided", 10, "count", target=10),
        _item("career_guidance_programs", 8, "boolean"),
        # Extracurricular (25)
        _item("clubs_and_societies", 7, "count", target=5),
        _item("sports_teams", 6, "count", target=4),
        _item("cultural_activities", 6, "count", target=4),
        _item("student_participation_rate", 6),
        # Discipline (25)
        _item("disciplinary_incidents", 10, "inverse_count", target=20),
        _item("discipline_policy_implemented", 8, "boolean"),
        _item("positive_reinforcement_programs", 7, "boolean"),
        # Special needs support (20); partial credit when none are enrolled
        _item("special_needs_support_provided", 12, "boolean",
              requires="special_needs_students_enrolled"),
        _item("special_needs_baseline", 6, "constant",
              unless="special_needs_students_enrolled"),
        _item("inclusive_education_practices", 8, "scale"),
    ),
)

GENERAL_COMMUNITY = CategoryRubric(
    name="community",
    label="Community",
    max_score=50,
    items=(
        # Community involvement (30)
        _item("community_events_hosted", 12, "count", target=3),
        _item("community_volunteers", 10, "count", target=10),
        _item("community_projects_completed", 8, "count", target=2),
        # External partnerships (20)
        _item("business_partnerships", 7, "count", target=2),
        _item("ngo_partnerships", 7, "count", target=2),
        _item("government_programs_participation", 6, "count", target=2),
    ),
)

GENERAL_THRESHOLDS = RatingThresholds(tiers=(
    RatingTier(code="outstanding", name="Outstanding", label="85-100%", min_score=850),
    RatingTier(code="very_good", name="Very Good", label="70-84%", min_score=700),
    RatingTier(code="good", name="Good", label="55-69%", min_score=550),
    RatingTier(code="satisfactory", name="Satisfactory", label="40-54%", min_score=400),
    RatingTier(code="needs_improvement", name="Needs Improvement", label="<40%", min_score=0),
))

GENERAL_TRACK = TrackConfig(
    track=SchoolTrack.GENERAL,
    max_total=1000,
    categories=(
        GENERAL_ACADEMIC,
        GENERAL_ATTENDANCE,
        GENERAL_INFRASTRUCTURE,
        GENERAL_TEACHING_QUALITY,
        GENERAL_MANAGEMENT,
        GENERAL_STUDENT_WELFARE,
        GENERAL_COMMUNITY,
    ),
    thresholds=GENERAL_THRESHOLDS,
)


# =============================================================================
# TAPS TRACK (SECONDARY)
# =============================================================================

TAPS_SCHOOL_INPUTS = CategoryRubric(
    name="school_inputs_operations",
    label="School Inputs & Operations",
    max_score=80,
    aliases=("school_inputs",),
    items=(
        _band("trained_teachers_rate", "trained_teachers"),
        _band("teacher_learner_ratio", "teacher_learner_ratio"),
        _band("teacher_attendance_rate", "attendance"),
        _band("teacher_attendance_increase", "increase"),
        _band("teachers_late_percentage", "late_percentage"),
        _band("sweeper_cleaner_attendance", "attendance"),
        _band("learners_attendance_rate", "attendance"),
        _band("learners_attendance_increase", "increase"),
    ),
)

TAPS_LEADERSHIP = CategoryRubric(
    name="leadership",
    label="Leadership",
    max_score=30,
    items=(
        _item("project_plan_progress", 10, "select"),
        _band("hm_attendance_rate", "attendance"),
        _band("leadership_team_attendance", "attendance"),
    ),
)

TAPS_GRADES = (7, 8, 9, 10, 11)
TAPS_POINTS_PER_ACADEMIC_METRIC = 8

TAPS_ACADEMICS = CategoryRubric(
    name="academics",
    label="Academics",
    max_score=200,
    items=tuple(
        item
        for grade in TAPS_GRADES
        for item in (
            _band(f"grade{grade}_overall_pass_rate", "pass_rate", TAPS_POINTS_PER_ACADEMIC_METRIC),
            _band(f"grade{grade}_english_pass_rate", "pass_rate", TAPS_POINTS_PER_ACADEMIC_METRIC),
            _band(f"grade{grade}_math_pass_rate", "pass_rate", TAPS_POINTS_PER_ACADEMIC_METRIC),
            _band(f"grade{grade}_stem_pass_rate", "pass_rate", TAPS_POINTS_PER_ACADEMIC_METRIC),
            _band(f"grade{grade}_learners_above70_percent", "high_achievers",
                  TAPS_POINTS_PER_ACADEMIC_METRIC),
        )
    ),
)

TAPS_TEACHER_DEVELOPMENT = CategoryRubric(
    name="teacher_development",
    label="Teacher Development / Accountability",
    max_score=20,
    items=(
        _band("pd_training_sessions", "sessions"),
        _band("classroom_supervisory_visits", "sessions"),
    ),
)

TAPS_HEALTH_SAFETY = CategoryRubric(
    name="health_safety",
    label="Health & Safety",
    max_score=50,
    items=(
        _band("student_incidence_rate", "incidents"),
        _band("teacher_disciplinary_rate", "incidents"),
        _item("fire_safety_level", 10, "select"),
        _item("evacuation_drill_frequency", 10, "select"),
        _item("potable_water_access", 10, "select"),
    ),
)

TAPS_SCHOOL_CULTURE = CategoryRubric(
    name="school_culture",
    label="School Culture / Environment",
    max_score=70,
    items=(
        _band("extracurricular_clubs", "clubs"),
        _band("learners_in_clubs_percentage", "club_participation"),
        _item("remediation_level", 10, "select"),
        _band("pta_participation_rate", "pta_participation"),
        _band("pta_initiated_activities", "pta_activities"),
        _band("pta_general_meetings", "pta_meetings"),
        _band("parents_collecting_report_cards", "report_cards"),
    ),
)

TAPS_THRESHOLDS = RatingThresholds(tiers=(
    RatingTier(code="A", name="Grade A", label="Outstanding", min_score=357,
               description="Outstanding performance across all metrics"),
    RatingTier(code="B", name="Grade B", label="High Achieving", min_score=294,
               description="Strong performance with minor areas for improvement"),
    RatingTier(code="C", name="Grade C", label="Standard", min_score=210,
               description="Meeting basic expectations with room for growth"),
    RatingTier(code="D", name="Grade D", label="Struggling", min_score=84,
               description="Below expectations, requires focused improvement"),
    RatingTier(code="E", name="Grade E", label="Critical Support", min_score=0,
               description="Requires immediate intervention and support"),
))

# Maximum equals the sum of the category maxima so a full report can reach it
TAPS_TRACK = TrackConfig(
    track=SchoolTrack.TAPS,
    max_total=450,
    categories=(
        TAPS_SCHOOL_INPUTS,
        TAPS_LEADERSHIP,
        TAPS_ACADEMICS,
        TAPS_TEACHER_DEVELOPMENT,
        TAPS_HEALTH_SAFETY,
        TAPS_SCHOOL_CULTURE,
    ),
    thresholds=TAPS_THRESHOLDS,
)


# =============================================================================
# REGISTRY
# =============================================================================

TRACK_CONFIGS: Mapping[SchoolTrack, TrackConfig] = MappingProxyType({
    SchoolTrack.GENERAL: GENERAL_TRACK,
    SchoolTrack.TAPS: TAPS_TRACK,
})


def get_track_config(track: Union[SchoolTrack, str]) -> TrackConfig:
    """
    Look up the scoring configuration of a track.

    Raises:
        ValueError: If the track is unknown
    """
    return TRACK_CONFIGS[SchoolTrack(track)]


def track_for_school_type(school_type: Optional[str]) -> SchoolTrack:
    """Map a school type to its scoring track; unknown types score as general."""
    if not school_type:
        return SchoolTrack.GENERAL
    return SCHOOL_TYPE_TRACK_MAP.get(school_type.strip().lower(), SchoolTrack.GENERAL)
