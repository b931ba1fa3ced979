"""Lenient value coercion shared by the CSV decoder and the state repair pass."""
from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Optional

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def coerce_quantity(value: Any) -> int:
    """Convert quantity inputs to a non-negative integer, ``0`` when unusable."""

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return max(int(value), 0)
    match = _LEADING_INT.match(str(value))
    if match is None:
        return 0
    return max(int(match.group(1)), 0)


def coerce_value(value: Any) -> Optional[float]:
    """Convert monetary inputs to a non-negative float or ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if match is None:
            return None
        number = float(match.group(1))
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def coerce_text(value: Any) -> Optional[str]:
    """Return ``None`` for missing or empty strings, the string otherwise."""

    if value is None:
        return None
    text = str(value)
    if not text:
        return None
    return text


def coerce_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        candidates = value.split(";")
    elif isinstance(value, (list, tuple, set, frozenset)):
        candidates = [str(entry) for entry in value if entry is not None]
    else:
        return ()
    tags: list[str] = []
    for candidate in candidates:
        tag = candidate.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def is_true_flag(value: Any) -> bool:
    """Only a case-insensitive ``"true"`` (or a real ``True``) counts as set."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).lower() == "true"


def is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


__all__ = [
    "coerce_date",
    "coerce_quantity",
    "coerce_tags",
    "coerce_text",
    "coerce_value",
    "is_positive_int",
    "is_true_flag",
]
