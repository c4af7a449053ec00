"""
Assessment Logic Module

Provides the deterministic scoring, rating and rollup engine for school
assessment reports.
"""

from .contracts import (
    ScoringItem,
    CategoryRubric,
    RatingTier,
    RatingThresholds,
    TrackConfig,
    CategoryScore,
    ReportScore,
    NextRatingInfo,
    ReportSnapshot,
    RollupOutput,
    ScopeSummary,
    TrendResult,
    PeriodClosingResult,
)
from .engine import AssessmentEngine, score_answers
from .constants import SchoolTrack, ReportStatus, TrendDirection, RollupScope

__all__ = [
    # Main engine
    "AssessmentEngine",
    "score_answers",

    # Contracts
    "ScoringItem",
    "CategoryRubric",
    "RatingTier",
    "RatingThresholds",
    "TrackConfig",
    "CategoryScore",
    "ReportScore",
    "NextRatingInfo",
    "ReportSnapshot",
    "RollupOutput",
    "ScopeSummary",
    "TrendResult",
    "PeriodClosingResult",

    # Enums
    "SchoolTrack",
    "ReportStatus",
    "TrendDirection",
    "RollupScope",
]
