"""
Data Contracts for the Assessment Scoring Engine

Defines Pydantic models for the scoring configuration (rubrics, rating
thresholds, track configs), the scoring outputs and the rollup outputs.
These contracts are the API boundary for the scoring engine.
"""

from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    ITEM_KINDS,
    ENGINE_VERSION,
    ReportStatus,
    RollupScope,
    SchoolTrack,
    TrendDirection,
    TrendMode,
    RecommendationPriority,
)


AnswerValue = Union[bool, float, str]


# =============================================================================
# CONFIGURATION CONTRACTS
# =============================================================================

class ScoringItem(BaseModel):
    """
    One weighted sub-item of an assessment category.

    The raw answer for `key` is normalized into [0, 1] according to `kind`
    and multiplied by `max_points`.
    """
    key: str
    max_points: float = Field(gt=0)
    kind: str = "fraction"

    # Kind parameters
    target: Optional[float] = None      # count / inverse_count
    floor: Optional[float] = None       # inverse_ratio
    ceiling: Optional[float] = None     # inverse_ratio
    bands: Optional[Tuple[float, ...]] = None  # band_higher / band_lower
    options: Optional[Dict[str, float]] = None  # select; falls back to the shared option table

    # Gating
    requires: Optional[str] = None  # Only counts when this answer is truthy
    unless: Optional[str] = None    # Only counts when this answer is absent or zero

    class Config:
        frozen = True

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, value: str) -> str:
        if value not in ITEM_KINDS:
            raise ValueError(f"Unknown scoring item kind: {value}")
        return value

    @model_validator(mode="after")
    def _check_parameters(self):
        if self.kind in ("count", "inverse_count") and not (self.target and self.target > 0):
            raise ValueError(f"Item '{self.key}' of kind {self.kind} needs a positive target")
        if self.kind == "inverse_ratio":
            if self.floor is None or self.ceiling is None or self.ceiling <= self.floor:
                raise ValueError(f"Item '{self.key}' needs floor < ceiling")
        if self.kind in ("band_higher", "band_lower") and (not self.bands or len(self.bands) != 4):
            raise ValueError(f"Item '{self.key}' needs four band limits")
        return self


class CategoryRubric(BaseModel):
    """Weighting table for one assessment category."""
    name: str
    label: str
    max_score: float = Field(gt=0)
    items: Tuple[ScoringItem, ...] = ()
    aliases: Tuple[str, ...] = ()  # Other section names the answers may arrive under

    class Config:
        frozen = True

    @field_validator("items")
    @classmethod
    def _unique_keys(cls, items: Tuple[ScoringItem, ...]) -> Tuple[ScoringItem, ...]:
        keys = [item.key for item in items]
        if len(keys) != len(set(keys)):
            raise ValueError("Scoring item keys must be unique within a category")
        return items

    @property
    def answer_keys(self) -> List[str]:
        """Answer keys this category reads (items and their gates)."""
        keys: List[str] = []
        for item in self.items:
            if item.kind != "constant":
                keys.append(item.key)
            for gate in (item.requires, item.unless):
                if gate and gate not in keys:
                    keys.append(gate)
        return keys


class RatingTier(BaseModel):
    """A named rating bucket and its minimum total score."""
    code: str
    name: str
    label: str = ""
    description: str = ""
    min_score: float

    class Config:
        frozen = True


class RatingThresholds(BaseModel):
    """
    Ordered, immutable threshold table.

    Tiers are stored sorted by ascending minimum score.
    """
    tiers: Tuple[RatingTier, ...]

    class Config:
        frozen = True

    @field_validator("tiers")
    @classmethod
    def _ordered(cls, tiers: Tuple[RatingTier, ...]) -> Tuple[RatingTier, ...]:
        if not tiers:
            raise ValueError("At least one rating tier is required")
        codes = [t.code for t in tiers]
        if len(codes) != len(set(codes)):
            raise ValueError("Rating tier codes must be unique")
        minimums = [t.min_score for t in tiers]
        if len(minimums) != len(set(minimums)):
            raise ValueError("Rating tier minimums must be distinct")
        return tuple(sorted(tiers, key=lambda t: t.min_score))

    @classmethod
    def from_minimums(
        cls,
        minimums: Mapping[str, float],
        names: Optional[Mapping[str, str]] = None
    ) -> "RatingThresholds":
        """Build a table from {code: min_score}; names default to 'Grade <code>'."""
        names = names or {}
        return cls(tiers=tuple(
            RatingTier(code=code, name=names.get(code, f"Grade {code}"), min_score=minimum)
            for code, minimum in minimums.items()
        ))

    @property
    def lowest(self) -> RatingTier:
        return self.tiers[0]

    @property
    def highest(self) -> RatingTier:
        return self.tiers[-1]

    def descending(self) -> Tuple[RatingTier, ...]:
        return tuple(reversed(self.tiers))

    def get(self, code: str) -> Optional[RatingTier]:
        for tier in self.tiers:
            if tier.code == code:
                return tier
        return None


class TrackConfig(BaseModel):
    """Complete scoring configuration for one school track."""
    track: SchoolTrack
    max_total: float = Field(gt=0)
    categories: Tuple[CategoryRubric, ...]
    thresholds: RatingThresholds

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _consistent(self):
        names = [c.name for c in self.categories]
        if len(names) != len(set(names)):
            raise ValueError("Category names must be unique within a track")
        if sum(c.max_score for c in self.categories) > self.max_total:
            raise ValueError(
                f"Category maxima exceed the {self.track.value} track maximum of {self.max_total}"
            )
        return self

    def category(self, name: str) -> Optional[CategoryRubric]:
        for rubric in self.categories:
            if rubric.name == name:
                return rubric
        return None


# =============================================================================
# SCORING OUTPUT CONTRACTS
# =============================================================================

class AnswerSet(BaseModel):
    """One category's raw answers after boundary validation."""
    values: Dict[str, AnswerValue] = Field(default_factory=dict)
    missing_keys: List[str] = Field(default_factory=list)
    unknown_keys: List[str] = Field(default_factory=list)


class CategoryScore(BaseModel):
    category: str
    label: str = ""
    score: float = Field(ge=0.0)
    max_score: float
    percentage: float = 0.0
    missing_items: List[str] = Field(default_factory=list)
    unknown_items: List[str] = Field(default_factory=list)


class NextRatingInfo(BaseModel):
    points_to_next_rating: float = 0.0
    next_rating_name: Optional[str] = None


class ReportScore(BaseModel):
    """Scored report: category scores, total and rating."""
    track: SchoolTrack
    category_scores: List[CategoryScore] = Field(default_factory=list)
    total_score: float = 0.0
    max_total: float
    total_percentage: float = 0.0
    rating: RatingTier
    next_rating: NextRatingInfo = Field(default_factory=NextRatingInfo)
    warnings: List[str] = Field(default_factory=list)

    @property
    def category_totals(self) -> Dict[str, float]:
        return {c.category: c.score for c in self.category_scores}


class WeakCategory(BaseModel):
    category: str
    label: str = ""
    percentage: float
    priority: RecommendationPriority

    class Config:
        use_enum_values = True


class ImprovementRecommendation(BaseModel):
    category: str
    priority: RecommendationPriority
    recommendation: str
    focus_areas: List[str] = Field(default_factory=list)

    class Config:
        use_enum_values = True


# =============================================================================
# ROLLUP CONTRACTS
# =============================================================================

class ReportSnapshot(BaseModel):
    """
    Plain-data view of a persisted report, as consumed by the rollup engine.
    """
    report_id: str
    school_id: str
    school_name: str = ""
    region_id: Optional[str] = None
    region_name: str = ""
    period_id: Optional[str] = None
    track: SchoolTrack = SchoolTrack.GENERAL
    status: ReportStatus = ReportStatus.SUBMITTED
    total_score: Optional[float] = None
    rating_code: Optional[str] = None
    category_scores: Dict[str, float] = Field(default_factory=dict)
    submitted_at: Optional[datetime] = None


class RankedSchool(BaseModel):
    rank: int
    school_id: str
    school_name: str = ""
    region_id: Optional[str] = None
    region_name: str = ""
    total_score: float
    rating_code: Optional[str] = None


class RankingPosition(BaseModel):
    school_id: str
    rank: Optional[int] = None
    total_ranked: int = 0
    percentile: Optional[int] = None
    total_score: Optional[float] = None


class SchoolDelta(BaseModel):
    school_id: str
    school_name: str = ""
    region_name: str = ""
    current_score: float
    previous_score: float
    change: float
    change_percent: Optional[float] = None


class TrendResult(BaseModel):
    """Comparison of one metric between the current and the prior period."""
    metric: str
    mode: TrendMode
    available: bool = False
    direction: Optional[TrendDirection] = None
    current_value: Optional[float] = None
    previous_value: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None

    class Config:
        use_enum_values = True


class ScopeSummary(BaseModel):
    """Aggregate statistics over the submitted reports of one scope and period."""
    scope: RollupScope
    scope_id: Optional[str] = None
    period_id: Optional[str] = None
    has_data: bool = False
    submitted_count: int = 0
    skipped_count: int = 0
    total_schools: Optional[int] = None
    submission_rate: Optional[float] = None
    average_score: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    median_score: Optional[float] = None
    percentiles: Dict[int, float] = Field(default_factory=dict)
    rating_distribution: Dict[str, int] = Field(default_factory=dict)
    category_averages: Dict[str, float] = Field(default_factory=dict)


class RegionStanding(BaseModel):
    region_id: str
    region_name: str = ""
    average_score: float
    submitted_count: int
    total_schools: Optional[int] = None
    submission_rate: Optional[float] = None
    is_critical: bool = False
    rank: int
    previous_rank: Optional[int] = None
    rank_change: Optional[int] = None


class RollupOutput(BaseModel):
    """
    Output contract for a regional or national rollup.
    """
    summary: ScopeSummary
    rankings: List[RankedSchool] = Field(default_factory=list)
    submission_trend: TrendResult
    score_trend: TrendResult
    most_improved: List[SchoolDelta] = Field(default_factory=list)
    underperforming: List[SchoolDelta] = Field(default_factory=list)
    declining_count: int = 0
    top_school: Optional[RankedSchool] = None
    at_risk_count: int = 0
    overdue_count: int = 0
    near_deadline_count: int = 0
    national_rank: Optional[int] = None  # Region scope only
    total_regions: int = 0
    regions: List[RegionStanding] = Field(default_factory=list)
    top_region: Optional[RegionStanding] = None
    lowest_region: Optional[RegionStanding] = None
    critical_regions_count: int = 0
    warnings: List[str] = Field(default_factory=list)
    engine_version: str = ENGINE_VERSION


class SchoolStanding(BaseModel):
    """A single school's position within its region and nationally."""
    school_id: str
    school_name: str = ""
    period_id: Optional[str] = None
    has_report: bool = False
    last_assessment_date: Optional[datetime] = None
    days_until_deadline: Optional[int] = None
    total_schools_in_region: int = 0
    lowest_category: Optional[WeakCategory] = None
    total_score: Optional[float] = None
    max_total: Optional[float] = None
    rating_code: Optional[str] = None
    rating_name: Optional[str] = None
    regional_position: Optional[RankingPosition] = None
    national_position: Optional[RankingPosition] = None
    next_rating: Optional[NextRatingInfo] = None
    weak_categories: List[WeakCategory] = Field(default_factory=list)
    recommendations: List[ImprovementRecommendation] = Field(default_factory=list)
    trend: Optional[TrendResult] = None


# =============================================================================
# JOB CONTRACTS
# =============================================================================

class PeriodClosingResult(BaseModel):
    processed_periods: List[str] = Field(default_factory=list)
    expired_drafts_count: int = 0
    failed_periods: List[str] = Field(default_factory=list)
    ran_at: datetime
