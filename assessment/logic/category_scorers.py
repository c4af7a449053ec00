"""
Category Scorers

Turns one category's raw answer map into a bounded category score.
Each scoring item is normalized into [0.0, 1.0] by its kind and weighted
by its point allocation. All logic is deterministic and never raises on
malformed answers: unusable values contribute 0.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .constants import (
    BAND_FRACTIONS,
    SELECT_OPTION_FRACTIONS,
    SCALE_MIN,
    SCALE_MAX,
)
from .contracts import AnswerSet, AnswerValue, CategoryRubric, CategoryScore, ScoringItem
from .coercion import (
    coerce_bool,
    coerce_number,
    coerce_option,
    normalize_answer_keys,
    round_half_up,
)


logger = logging.getLogger(__name__)


# =============================================================================
# NORMALIZERS
# =============================================================================

def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def _fraction(item: ScoringItem, value: float) -> float:
    return value


def _percentage(item: ScoringItem, value: float) -> float:
    return value / 100


def _inverse_percentage(item: ScoringItem, value: float) -> float:
    return (100 - value) / 100


def _scale(item: ScoringItem, value: float) -> float:
    return (value - SCALE_MIN) / (SCALE_MAX - SCALE_MIN)


def _count(item: ScoringItem, value: float) -> float:
    return min(value / item.target, 1.0)


def _inverse_count(item: ScoringItem, value: float) -> float:
    return max(0.0, (item.target - value) / item.target)


def _inverse_ratio(item: ScoringItem, value: float) -> float:
    # Ratios at or below the floor earn full points, at the ceiling none
    ratio = max(value, item.floor)
    return max(0.0, (item.ceiling - ratio) / (item.ceiling - item.floor))


def _boolean(item: ScoringItem, value: bool) -> float:
    return 1.0 if value else 0.0


def _band_higher(item: ScoringItem, value: float) -> float:
    for index, minimum in enumerate(item.bands):
        if value >= minimum:
            return BAND_FRACTIONS[index]
    return BAND_FRACTIONS[-1]


def _band_lower(item: ScoringItem, value: float) -> float:
    for index, maximum in enumerate(item.bands):
        if value <= maximum:
            return BAND_FRACTIONS[index]
    return BAND_FRACTIONS[-1]


def _select(item: ScoringItem, value: str) -> float:
    options = item.options or SELECT_OPTION_FRACTIONS
    return options.get(value, 0.0)


NORMALIZERS: Dict[str, Callable[[ScoringItem, Any], float]] = {
    "fraction": _fraction,
    "percentage": _percentage,
    "inverse_percentage": _inverse_percentage,
    "scale": _scale,
    "count": _count,
    "inverse_count": _inverse_count,
    "inverse_ratio": _inverse_ratio,
    "boolean": _boolean,
    "band_higher": _band_higher,
    "band_lower": _band_lower,
    "select": _select,
}

# How each kind's raw answer is coerced at the boundary
_COERCERS: Dict[str, Callable[[Any], Optional[AnswerValue]]] = {
    "boolean": coerce_bool,
    "select": coerce_option,
}


def normalize_item(item: ScoringItem, value: Any) -> float:
    """
    Normalize an already-coerced answer into [0.0, 1.0] for its item kind.
    """
    if item.kind == "constant":
        return 1.0
    if value is None:
        return 0.0
    return _clamp_unit(NORMALIZERS[item.kind](item, value))


# =============================================================================
# BOUNDARY VALIDATION
# =============================================================================

def _coerce_gate(value: Any) -> Optional[AnswerValue]:
    number = coerce_number(value)
    if number is not None:
        return number
    return coerce_bool(value)


def _gate_open(value: Optional[AnswerValue]) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    return bool(value)


def validate_answers(
    raw_answers: Optional[Mapping[str, Any]],
    rubric: CategoryRubric
) -> AnswerSet:
    """
    Normalize keys and coerce values of one category's raw answers.

    Unknown keys are reported rather than scored. Values that cannot be
    coerced for their item kind are treated as missing.

    Args:
        raw_answers: Raw answer map (camelCase or snake_case, possibly nested)
        rubric: Category rubric the answers belong to

    Returns:
        AnswerSet with coerced values, missing and unknown keys
    """
    answers = normalize_answer_keys(raw_answers)
    known_keys = set(rubric.answer_keys)

    values: Dict[str, AnswerValue] = {}
    missing = []

    for item in rubric.items:
        if item.kind == "constant":
            continue
        raw_value = answers.get(item.key)
        coerced = _COERCERS.get(item.kind, coerce_number)(raw_value)
        if coerced is None:
            if raw_value is not None and raw_value != "":
                logger.debug(f"Malformed answer for {rubric.name}.{item.key}: {raw_value!r}")
            missing.append(item.key)
            continue
        values[item.key] = coerced

    for item in rubric.items:
        for gate in (item.requires, item.unless):
            if gate and gate not in values:
                coerced_gate = _coerce_gate(answers.get(gate))
                if coerced_gate is not None:
                    values[gate] = coerced_gate

    unknown = sorted(key for key in answers if key not in known_keys)
    if unknown:
        logger.warning(f"⚠️ Unknown answer keys in {rubric.name}: {', '.join(unknown)}")

    return AnswerSet(values=values, missing_keys=missing, unknown_keys=unknown)


# =============================================================================
# SCORING
# =============================================================================

def score_item(item: ScoringItem, answers: AnswerSet) -> float:
    """
    Points earned by one item (0 .. item.max_points).
    """
    if item.requires and not _gate_open(answers.values.get(item.requires)):
        return 0.0
    if item.unless and _gate_open(answers.values.get(item.unless)):
        return 0.0
    return normalize_item(item, answers.values.get(item.key)) * item.max_points


def score_category(
    raw_answers: Optional[Mapping[str, Any]],
    rubric: CategoryRubric
) -> CategoryScore:
    """
    Score one category.

    score = sum(normalized item value x item points), clamped to
    [0, rubric.max_score] and rounded half-up to whole points.
    A category that was never recorded (None) scores 0.

    Args:
        raw_answers: Raw answer map for the category, or None
        rubric: Weighting table for the category

    Returns:
        CategoryScore
    """
    answers = validate_answers(raw_answers, rubric)

    # Baseline awards only apply to categories recorded as a non-empty map
    if not normalize_answer_keys(raw_answers):
        raw_score = 0.0
    else:
        raw_score = sum(score_item(item, answers) for item in rubric.items)
    score = min(max(round_half_up(raw_score), 0.0), rubric.max_score)

    return CategoryScore(
        category=rubric.name,
        label=rubric.label,
        score=score,
        max_score=rubric.max_score,
        percentage=round_half_up(score / rubric.max_score * 100, 1),
        missing_items=answers.missing_keys,
        unknown_items=answers.unknown_keys,
    )
