"""
Assessment Engine

Main orchestrator that combines the scoring, rating and rollup components.
Holds the injected track configurations and performs no I/O.
"""

from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Union

from .constants import ENGINE_VERSION, RollupScope, SchoolTrack, TrendMode
from .contracts import (
    ImprovementRecommendation,
    NextRatingInfo,
    RatingTier,
    ReportScore,
    ReportSnapshot,
    RollupOutput,
    TrackConfig,
    TrendResult,
    WeakCategory,
)
from .aggregator import aggregate_category_totals, aggregate_report
from .classifier import classify_score, identify_weak_categories, points_to_next_rating
from .recommendations import build_recommendations
from .rollup import build_rollup, compute_trend
from .rubrics import TRACK_CONFIGS


class AssessmentEngine:
    """
    Scoring and rollup engine over a fixed set of track configurations.

    Pipeline flow:
    1. Category Scoring - Raw answers -> bounded category scores
    2. Aggregation - Category scores -> total, rating, points to next rating
    3. Diagnosis - Weak categories and improvement recommendations
    4. Rollup - Submitted reports of a scope -> statistics, rankings, trends
    """

    def __init__(self, track_configs: Optional[Mapping[SchoolTrack, TrackConfig]] = None):
        """
        Args:
            track_configs: {track: TrackConfig}. Defaults to the built-in rubrics.
        """
        configs = track_configs if track_configs is not None else TRACK_CONFIGS
        self.track_configs = MappingProxyType(dict(configs))
        self.version = ENGINE_VERSION

    def config_for(self, track: Union[SchoolTrack, str]) -> TrackConfig:
        """
        Raises:
            ValueError: If the track is unknown or not configured
        """
        track = SchoolTrack(track)
        if track not in self.track_configs:
            raise ValueError(f"No scoring configuration for track '{track.value}'")
        return self.track_configs[track]

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def score_report(
        self,
        answers_by_category: Optional[Mapping[str, Any]],
        track: Union[SchoolTrack, str] = SchoolTrack.GENERAL
    ) -> ReportScore:
        return aggregate_report(answers_by_category, self.config_for(track))

    def rate_category_totals(
        self,
        category_totals: Mapping[str, Any],
        track: Union[SchoolTrack, str] = SchoolTrack.GENERAL
    ) -> ReportScore:
        return aggregate_category_totals(category_totals, self.config_for(track))

    def classify(self, total_score: float, track: Union[SchoolTrack, str]) -> RatingTier:
        return classify_score(total_score, self.config_for(track).thresholds)

    def next_rating(self, total_score: float, track: Union[SchoolTrack, str]) -> NextRatingInfo:
        return points_to_next_rating(total_score, self.config_for(track).thresholds)

    # -------------------------------------------------------------------------
    # Diagnosis
    # -------------------------------------------------------------------------

    def weak_categories(
        self,
        report: ReportScore,
        threshold: Optional[float] = None
    ) -> List[WeakCategory]:
        return identify_weak_categories(report.category_scores, threshold)

    def recommendations(self, report: ReportScore) -> List[ImprovementRecommendation]:
        return build_recommendations(self.weak_categories(report), report.track)

    # -------------------------------------------------------------------------
    # Rollups
    # -------------------------------------------------------------------------

    def rollup(
        self,
        scope: Union[RollupScope, str],
        current: Iterable[ReportSnapshot],
        track: Union[SchoolTrack, str] = SchoolTrack.GENERAL,
        previous: Optional[Iterable[ReportSnapshot]] = None,
        **kwargs
    ) -> RollupOutput:
        """
        Build a scope rollup rated against one track's thresholds.

        Extra keyword arguments are passed to build_rollup.
        """
        return build_rollup(
            scope,
            current,
            self.config_for(track).thresholds,
            previous=previous,
            **kwargs
        )

    def school_trend(
        self,
        current_total: Optional[float],
        previous_total: Optional[float]
    ) -> TrendResult:
        """Per-school score trend, stable within +/- 20 points."""
        return compute_trend("total_score", current_total, previous_total, TrendMode.ABSOLUTE)


# Convenience function for simple usage
def score_answers(
    answers_by_category: Optional[Mapping[str, Any]],
    track: Union[SchoolTrack, str] = SchoolTrack.GENERAL
) -> ReportScore:
    """
    Score a report's raw answers with the built-in rubrics.
    """
    return AssessmentEngine().score_report(answers_by_category, track)
