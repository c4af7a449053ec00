"""
Report Aggregator

Combines category scores into a report total and classifies it.
The total is the sum of category scores and never exceeds the track maximum.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .contracts import CategoryScore, ReportScore, TrackConfig
from .category_scorers import score_category
from .classifier import classify_score, points_to_next_rating
from .coercion import coerce_number, round_half_up, to_snake_case


logger = logging.getLogger(__name__)


def split_sections(
    answers_by_category: Optional[Mapping[str, Any]],
    track_config: TrackConfig
) -> Tuple[Dict[str, Any], list]:
    """
    Match raw answer sections to the track's categories.

    Section names are normalized to snake_case and matched against each
    category's name and aliases.

    Returns:
        (answers keyed by category name, unknown section names)
    """
    lookup: Dict[str, str] = {}
    for rubric in track_config.categories:
        lookup[rubric.name] = rubric.name
        for alias in rubric.aliases:
            lookup[alias] = rubric.name

    sections: Dict[str, Any] = {}
    unknown = []
    for raw_name, answers in (answers_by_category or {}).items():
        name = lookup.get(to_snake_case(raw_name))
        if name is None:
            unknown.append(raw_name)
            continue
        sections[name] = answers
    return sections, sorted(unknown)


def build_report_score(
    category_scores: Iterable[CategoryScore],
    track_config: TrackConfig,
    warnings: Optional[list] = None
) -> ReportScore:
    """
    Total, classify and wrap already-computed category scores.
    """
    category_scores = list(category_scores)
    total = min(sum(c.score for c in category_scores), track_config.max_total)

    return ReportScore(
        track=track_config.track,
        category_scores=category_scores,
        total_score=total,
        max_total=track_config.max_total,
        total_percentage=round_half_up(total / track_config.max_total * 100, 1),
        rating=classify_score(total, track_config.thresholds),
        next_rating=points_to_next_rating(total, track_config.thresholds),
        warnings=warnings or [],
    )


def aggregate_report(
    answers_by_category: Optional[Mapping[str, Any]],
    track_config: TrackConfig
) -> ReportScore:
    """
    Score every category of a report and aggregate into a rated total.

    Categories absent from the answers score 0. Unknown sections and
    unknown answer keys are returned as warnings.

    Args:
        answers_by_category: {category name: raw answer map}
        track_config: Scoring configuration of the school's track

    Returns:
        ReportScore
    """
    sections, unknown_sections = split_sections(answers_by_category, track_config)
    warnings = [f"Unknown section: {name}" for name in unknown_sections]

    category_scores = []
    for rubric in track_config.categories:
        scored = score_category(sections.get(rubric.name), rubric)
        category_scores.append(scored)
        warnings.extend(
            f"Unknown answer key: {rubric.name}.{key}" for key in scored.unknown_items
        )

    report = build_report_score(category_scores, track_config, warnings)
    logger.debug(
        f"Aggregated {track_config.track.value} report: "
        f"{report.total_score}/{report.max_total} -> {report.rating.code}"
    )
    return report


def aggregate_category_totals(
    category_totals: Mapping[str, Any],
    track_config: TrackConfig
) -> ReportScore:
    """
    Re-rate a report from stored per-category totals.

    Stored values are coerced and clamped to each category's maximum;
    categories without a stored total count as 0.
    """
    category_scores = []
    for rubric in track_config.categories:
        value = coerce_number(category_totals.get(rubric.name)) or 0.0
        score = min(max(value, 0.0), rubric.max_score)
        category_scores.append(CategoryScore(
            category=rubric.name,
            label=rubric.label,
            score=score,
            max_score=rubric.max_score,
            percentage=round_half_up(score / rubric.max_score * 100, 1),
        ))
    return build_report_score(category_scores, track_config)


def batch_aggregate(
    reports: Mapping[str, Optional[Mapping[str, Any]]],
    track_config: TrackConfig
) -> Dict[str, ReportScore]:
    """
    Aggregate several reports of the same track.

    Args:
        reports: {report id: answers by category}
        track_config: Shared track configuration

    Returns:
        {report id: ReportScore}
    """
    return {
        report_id: aggregate_report(answers, track_config)
        for report_id, answers in reports.items()
    }
