"""
Answer coercion shared by every engine.

Raw answers arrive as whatever the presentation layer stored: strings,
numbers, booleans, lists, nested dicts, or nothing at all. The engines see
them through these helpers only, so the three render surfaces agree on
what "3", 3, 3.0 and True mean.
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional


def number_to_text(value: float | int) -> str:
    """
    Shortest text form of a number.

    Integral floats drop the fractional part: 42.0 -> "42".
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    try:
        return str(value)
    except ValueError:
        return "Infinity" if value > 0 else "-Infinity"


def _scalar_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return number_to_text(value)
    return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)


def answer_to_text(value: Any) -> str:
    """
    Text form of a raw answer.

    Strings pass through, lists join with ", ", numbers and booleans use
    their literal form, anything else becomes compact JSON. Missing is "".
    """
    if isinstance(value, (list, tuple)):
        return ", ".join(_scalar_to_text(item) for item in value)
    return _scalar_to_text(value)


def is_empty_answer(value: Any) -> bool:
    """Missing, or blank once stringified and trimmed."""
    return value is None or answer_to_text(value).strip() == ""


def parse_number(value: Any) -> Optional[float]:
    """
    Finite float for a numeric-looking value, else None.

    Blank text counts as 0.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def answer_to_number(value: Any) -> float:
    """Numeric form of a raw answer; missing or non-numeric is 0."""
    number = parse_number(value)
    return 0.0 if number is None else number
