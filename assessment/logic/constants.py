"""
Assessment Engine Constants

Defines the enums, band tables, option maps and thresholds used by the
scoring, rating and rollup engine.
All values are deterministic and read-only.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class SchoolTrack(str, Enum):
    """Assessment track a school is scored under."""
    GENERAL = "general"    # Primary / nursery schools (max 1000)
    TAPS = "taps"          # Secondary schools (Termly Accountability Performance)


class ReportStatus(str, Enum):
    """Lifecycle states of an assessment report."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    EXPIRED_DRAFT = "expired_draft"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class RollupScope(str, Enum):
    REGION = "region"
    NATIONAL = "national"


class TrendMode(str, Enum):
    RELATIVE = "relative"  # Percentage change vs. prior value
    ABSOLUTE = "absolute"  # Raw point difference


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# School type (as stored on the school record) -> scoring track
SCHOOL_TYPE_TRACK_MAP: Mapping[str, SchoolTrack] = MappingProxyType({
    "primary": SchoolTrack.GENERAL,
    "nursery": SchoolTrack.GENERAL,
    "general": SchoolTrack.GENERAL,
    "secondary": SchoolTrack.TAPS,
})

# =============================================================================
# NORMALIZER KINDS
# =============================================================================

ITEM_KINDS: Tuple[str, ...] = (
    "fraction",            # Value already normalized to 0-1
    "percentage",          # 0-100 -> 0-1
    "inverse_percentage",  # 0-100, lower is better
    "scale",               # 1-5 rubric scale -> 0-1
    "count",               # value / target, capped at 1
    "inverse_count",       # (target - value) / target, floored at 0
    "inverse_ratio",       # Students-per-X ratio, lower is better
    "boolean",             # Truthy -> 1
    "band_higher",         # Banded lookup, higher value is better
    "band_lower",          # Banded lookup, lower value is better
    "select",              # Enumerated option -> fraction
    "constant",            # Baseline award, does not read an answer
)

# =============================================================================
# BAND TABLES (TAPS)
# =============================================================================

# Fraction of an item's points earned per band, best band first
BAND_FRACTIONS: Tuple[float, ...] = (1.0, 0.8, 0.6, 0.4, 0.2)

# Higher-is-better bands: minimum value for EXCELLENT, VERY_GOOD, GOOD, FAIR
PERCENTAGE_BANDS: Dict[str, Tuple[float, ...]] = {
    "attendance": (95, 90, 85, 80),
    "trained_teachers": (95, 90, 80, 70),
    "pass_rate": (80, 65, 50, 40),
    "high_achievers": (80, 65, 50, 40),
    "pta_participation": (80, 70, 60, 50),
    "increase": (20, 10, 5, 2),
    "club_participation": (80, 70, 60, 50),
    "report_cards": (95, 90, 80, 70),
}

COUNT_BANDS: Dict[str, Tuple[float, ...]] = {
    "sessions": (7, 5, 3, 1),
    "clubs": (6, 4, 2, 1),
    "pta_activities": (7, 5, 4, 2),
    "pta_meetings": (6, 4, 3, 2),
}

# Lower-is-better bands: maximum value for EXCELLENT, VERY_GOOD, GOOD, FAIR
LOWER_IS_BETTER_BANDS: Dict[str, Tuple[float, ...]] = {
    "incidents": (1, 3, 5, 10),
    "late_percentage": (0, 2, 4, 6),
    "teacher_learner_ratio": (15, 20, 25, 33),
}

# Enumerated answers used by the TAPS select-type metrics
SELECT_OPTION_FRACTIONS: Dict[str, float] = {
    "excellent": 1.0,
    "weekly": 1.0,
    "each_classroom": 1.0,
    "all_grades_4plus_hrs": 1.0,
    "very_good": 0.8,
    "2_3_per_month": 0.8,
    "every_two_classrooms": 0.8,
    "50_99_grades_4plus_hrs": 0.8,
    "good": 0.6,
    "monthly": 0.6,
    "hallway": 0.6,
    "all_grades_2_3_hrs": 0.6,
    "fair": 0.4,
    "every_2_months": 0.4,
    "single_bottle": 0.4,
    "some_grades_2_3_hrs": 0.4,
    "poor": 0.2,
    "none": 0.2,
    "less_than_2_hrs": 0.2,
}

# =============================================================================
# RUBRIC SCALE
# =============================================================================

SCALE_MIN = 1
SCALE_MAX = 5

# =============================================================================
# TREND CONFIGURATION
# =============================================================================

# Relative dead band (percent) used for scope-level trends
TREND_RELATIVE_DEAD_BAND = 5.0

# Absolute dead band (points) used for per-school score trends
TREND_ABSOLUTE_DEAD_BAND = 20.0

# Score drop (points) that marks a school as declining in regional metrics
DECLINE_THRESHOLD_POINTS = 20.0

# =============================================================================
# WEAK CATEGORY / RECOMMENDATION CONFIGURATION
# =============================================================================

WEAK_CATEGORY_THRESHOLD = 60.0
HIGH_PRIORITY_BELOW = 40.0
MAX_RECOMMENDATIONS = 5

# =============================================================================
# RANKING CONFIGURATION
# =============================================================================

DEFAULT_RANKING_LIMIT = 20
DEFAULT_DELTA_LIMIT = 5
PERCENTILE_POINTS: Tuple[int, ...] = (25, 50, 75)

# A region is critical below this average score or submission rate (percent)
CRITICAL_REGION_AVERAGE = 400.0
CRITICAL_SUBMISSION_RATE = 30.0

# =============================================================================
# PERIOD CONFIGURATION
# =============================================================================

NEAR_DEADLINE_DAYS = 7
ACADEMIC_YEAR_PATTERN = r"^(\d{4})-(\d{4})$"

ENGINE_VERSION = "1.0.0"
