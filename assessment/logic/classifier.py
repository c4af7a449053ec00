"""
Classifier

Maps total scores onto rating tiers:
- Threshold lookup (highest minimum first)
- Points needed to reach the next tier
- Tier distribution counts
- Weak category detection
"""

from typing import Dict, Iterable, List, Optional, Tuple

from .constants import (
    RecommendationPriority,
    WEAK_CATEGORY_THRESHOLD,
    HIGH_PRIORITY_BELOW,
)
from .contracts import (
    CategoryScore,
    NextRatingInfo,
    RatingThresholds,
    RatingTier,
    WeakCategory,
)
from .coercion import round_half_up


def classify_score(total_score: float, thresholds: RatingThresholds) -> RatingTier:
    """
    Classify a total score into a rating tier.

    Tiers are checked from the highest minimum down; the first tier whose
    minimum is <= the score wins. Scores below every minimum fall through
    to the lowest tier.

    Args:
        total_score: Report total score
        thresholds: Rating threshold table of the report's track

    Returns:
        RatingTier
    """
    for tier in thresholds.descending():
        if total_score >= tier.min_score:
            return tier
    return thresholds.lowest


def points_to_next_rating(total_score: float, thresholds: RatingThresholds) -> NextRatingInfo:
    """
    Points still needed to reach the tier above the current one.

    Returns 0 and no tier name when the score is already in the top tier.
    """
    current = classify_score(total_score, thresholds)
    position = thresholds.tiers.index(current)

    if position == len(thresholds.tiers) - 1:
        return NextRatingInfo(points_to_next_rating=0.0, next_rating_name=None)

    next_tier = thresholds.tiers[position + 1]
    return NextRatingInfo(
        points_to_next_rating=next_tier.min_score - total_score,
        next_rating_name=next_tier.name,
    )


def rating_distribution(
    total_scores: Iterable[float],
    thresholds: RatingThresholds
) -> Dict[str, int]:
    """
    Count scores per tier code. Every tier is present, highest first.
    """
    counts = {tier.code: 0 for tier in thresholds.descending()}
    for score in total_scores:
        counts[classify_score(score, thresholds).code] += 1
    return counts


def _priority_for(percentage: float) -> RecommendationPriority:
    if percentage < HIGH_PRIORITY_BELOW:
        return RecommendationPriority.HIGH
    if percentage < WEAK_CATEGORY_THRESHOLD:
        return RecommendationPriority.MEDIUM
    return RecommendationPriority.LOW


def identify_weak_categories(
    category_scores: Iterable[CategoryScore],
    threshold: Optional[float] = None
) -> List[WeakCategory]:
    """
    Find categories scoring below a percentage of their maximum.

    Args:
        category_scores: Scored categories of one report
        threshold: Percentage below which a category is weak (default 60)

    Returns:
        Weak categories, weakest first
    """
    if threshold is None:
        threshold = WEAK_CATEGORY_THRESHOLD

    weak: List[Tuple[float, WeakCategory]] = []
    for scored in category_scores:
        if scored.max_score <= 0:
            continue
        percentage = scored.score / scored.max_score * 100
        if percentage < threshold:
            weak.append((percentage, WeakCategory(
                category=scored.category,
                label=scored.label,
                percentage=round_half_up(percentage),
                priority=_priority_for(percentage),
            )))

    # Order on the exact ratio; the reported percentage is rounded
    weak.sort(key=lambda pair: (pair[0], pair[1].category))
    return [w for _, w in weak]
