"""
Answer Coercion Utilities

Single place where raw form answers are turned into scoring inputs:
- Key normalization (camelCase form ids -> snake_case rubric keys)
- Flattening of nested per-grade maps
- Number / boolean coercion

Nothing here raises on bad input. Unusable values come back as None.
"""

import math
import re
from typing import Any, Dict, Mapping, Optional


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

# Form ids that reach the same rubric key under a different spelling
_KEY_ALIASES = (
    (re.compile(r"^(grade\d+)_above70_percent$"), r"\1_learners_above70_percent"),
)

_TRUE_STRINGS = {"true", "yes", "y", "1", "on"}
_FALSE_STRINGS = {"false", "no", "n", "0", "off", ""}


def to_snake_case(key: str) -> str:
    """Convert a camelCase form id to snake_case (already snake keys pass through)."""
    snake = _CAMEL_BOUNDARY.sub("_", str(key).strip()).lower()
    for pattern, replacement in _KEY_ALIASES:
        snake = pattern.sub(replacement, snake)
    return snake


def normalize_answer_keys(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Normalize one category's raw answer map.

    Nested maps (e.g. {"grade7": {"overallPassRate": 70}}) are flattened to
    prefixed keys ("grade7_overall_pass_rate").

    Args:
        raw: Raw answer map as stored on the report, or None

    Returns:
        New dict with normalized keys
    """
    if not raw or not isinstance(raw, Mapping):
        return {}

    normalized: Dict[str, Any] = {}
    for key, value in raw.items():
        prefix = to_snake_case(key)
        if isinstance(value, Mapping):
            for inner_key, inner_value in value.items():
                normalized[to_snake_case(f"{prefix}_{to_snake_case(inner_key)}")] = inner_value
        else:
            normalized[prefix] = value
    return normalized


def coerce_number(value: Any) -> Optional[float]:
    """
    Coerce a raw answer to a finite float.

    Returns None for None, empty strings, non-numeric strings, NaN/inf and
    unsupported types.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def coerce_bool(value: Any) -> Optional[bool]:
    """Coerce a raw answer to a boolean; None when it cannot be interpreted."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positives (Python's round() is banker's rounding)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def coerce_option(value: Any) -> Optional[str]:
    """Coerce a select-type answer to its lower-case option code."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().lower()
    return text or None
