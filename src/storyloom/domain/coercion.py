"""Loose value coercion used by the rule language.

Authored graphs carry untyped literals, so a condition may compare the string
``"5"`` with the number ``5``. These helpers pin down one set of coercion rules
(the same ones the editor uses when it previews a graph):

* ``to_number`` turns booleans into 1/0, ``None`` into 0, numeric strings into
  their value and anything else into NaN.
* ``loose_equals`` compares after coercion: strings against strings verbatim,
  booleans as numbers, numbers against numeric strings, ``None`` only equal to
  ``None``.
* ``is_truthy`` treats ``0``, NaN, ``""`` and ``None`` as false.
"""
from __future__ import annotations

import math
import re

from storyloom.core.types import RuleValue

_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
_PREFIXED_BASES = {"0x": 16, "0o": 8, "0b": 2}
_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: object) -> float:
    """Coerce a rule value to a float, returning NaN when it is not numeric."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return _to_float(value)
    if isinstance(value, str):
        return _string_to_number(value)
    return math.nan


def _to_float(value: int | float) -> float:
    try:
        return float(value)
    except OverflowError:
        # Integers past the float range saturate like Number() does.
        return math.inf if value > 0 else -math.inf


def _string_to_number(text: str) -> float:
    stripped = text.strip()
    if not stripped:
        return 0.0
    if stripped in _INFINITIES:
        return _INFINITIES[stripped]
    base = _PREFIXED_BASES.get(stripped[:2].lower())
    if base is not None:
        if not stripped[2:].isalnum():
            return math.nan
        try:
            return _to_float(int(stripped[2:], base))
        except ValueError:
            return math.nan
    if _DECIMAL_PATTERN.match(stripped):
        return float(stripped)
    return math.nan


def normalize_number(value: float) -> int | float:
    """Return an int for integral finite results so snapshots stay readable."""
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def loose_equals(left: RuleValue, right: RuleValue) -> bool:
    """Compare two rule values after implicit coercion."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool):
        left = 1 if left else 0
    if isinstance(right, bool):
        right = 1 if right else 0
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if _is_number(left) or _is_number(right):
        if isinstance(left, (int, float, str)) and isinstance(right, (int, float, str)):
            return to_number(left) == to_number(right)
    return left == right


def is_truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return bool(value)


def is_numeric_literal(value: object) -> bool:
    """Return True for int/float literals (booleans excluded)."""
    return _is_number(value)
