"""Piecewise curve lookup used by the calculate_curve_value service.

A curve is a list of ``[operator] threshold : value`` entries separated by
commas or newlines, for example ``"> 18 : 20, <= 5 : 10, 15 : 25"``.
The operator defaults to ``>=``. ``default`` or ``*`` matches anything.
The first matching entry wins.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable

_CONDITION = re.compile(r"^([><=!]+)?\s*(-?[\d.]+)")
_SEPARATOR = re.compile(r"[\n,]+")

_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


class CurveError(ValueError):
    """No entry of the curve matched the input."""


def _parse_float(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def calculate_curve_value(input_value: float, curve: str) -> float:
    """Evaluate ``curve`` for ``input_value``.

    Malformed entries are skipped.

    Raises:
        CurveError: If no entry matches
    """
    for raw_entry in _SEPARATOR.split(curve):
        entry = raw_entry.strip()
        if not entry:
            continue

        parts = entry.split(":")
        if len(parts) != 2:
            continue

        condition = parts[0].strip()
        value = _parse_float(parts[1].strip())
        if value is None:
            continue

        match = _CONDITION.match(condition)
        if match:
            compare = _OPERATORS.get(match.group(1) or ">=", operator.ge)
            threshold = _parse_float(match.group(2))
            if threshold is not None and compare(input_value, threshold):
                return value
        elif condition.lower() == "default" or condition == "*":
            return value

    raise CurveError(f"No matching curve condition found for input value: {input_value}")
