"""Pairwise contradiction checks between conditions on the same variable."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from storyloom.domain.coercion import is_numeric_literal, loose_equals, to_number
from storyloom.domain.defs import ConditionDef

ConditionPair = Tuple[ConditionDef, ConditionDef]

_EQUALITY_OPERATORS = {"==", "!="}

# (operator of first, operator of second) -> thresholds clash when this holds.
_LITERAL_RANGE_RULES = {
    (">", "<"): lambda first, second: first >= second,
    ("<", ">"): lambda first, second: first <= second,
    (">=", "<"): lambda first, second: first >= second,
    ("<", ">="): lambda first, second: first <= second,
}


@dataclass(frozen=True, slots=True)
class _Interval:
    low: float
    low_inclusive: bool
    high: float
    high_inclusive: bool

    def intersect(self, other: "_Interval") -> "_Interval":
        if self.low > other.low:
            low, low_inclusive = self.low, self.low_inclusive
        elif self.low < other.low:
            low, low_inclusive = other.low, other.low_inclusive
        else:
            low, low_inclusive = self.low, self.low_inclusive and other.low_inclusive
        if self.high < other.high:
            high, high_inclusive = self.high, self.high_inclusive
        elif self.high > other.high:
            high, high_inclusive = other.high, other.high_inclusive
        else:
            high, high_inclusive = self.high, self.high_inclusive and other.high_inclusive
        return _Interval(low, low_inclusive, high, high_inclusive)

    @property
    def is_empty(self) -> bool:
        if self.low > self.high:
            return True
        return self.low == self.high and not (self.low_inclusive and self.high_inclusive)


def strict_equals(left: object, right: object) -> bool:
    """Identity-style equality: no coercion between booleans, numbers and strings."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_numeric_literal(left) and is_numeric_literal(right):
        return left == right
    return type(left) is type(right) and left == right


def are_contradictory(first: ConditionDef, second: ConditionDef, *, exhaustive: bool = False) -> bool:
    """Return True when no value can satisfy both conditions.

    The default check only knows ``==``/``!=`` on the same literal and the
    ``>``/``<``, ``>=``/``<`` threshold patterns. ``exhaustive`` switches to
    interval arithmetic over all six operators.
    """
    if first.variable_id != second.variable_id:
        return False
    if strict_equals(first.value, second.value) and {first.operator, second.operator} == _EQUALITY_OPERATORS:
        return True
    if exhaustive:
        return _exhaustive_clash(first, second)
    if is_numeric_literal(first.value) and is_numeric_literal(second.value):
        rule = _LITERAL_RANGE_RULES.get((first.operator, second.operator))
        if rule is not None and rule(first.value, second.value):
            return True
    return False


def _exhaustive_clash(first: ConditionDef, second: ConditionDef) -> bool:
    if first.operator == "==" and second.operator == "==":
        # Flag only literals that neither compare equal nor coerce to the same number.
        return not loose_equals(first.value, second.value) and not (
            to_number(first.value) == to_number(second.value)
        )
    first_interval = _to_interval(first)
    second_interval = _to_interval(second)
    if first_interval is None or second_interval is None:
        return False
    return first_interval.intersect(second_interval).is_empty


def _to_interval(condition: ConditionDef) -> _Interval | None:
    if not is_numeric_literal(condition.value):
        return None
    value = to_number(condition.value)
    if math.isnan(value):
        return None
    operator = condition.operator
    if operator == "==":
        return _Interval(value, True, value, True)
    if operator == ">":
        return _Interval(value, False, math.inf, False)
    if operator == ">=":
        return _Interval(value, True, math.inf, False)
    if operator == "<":
        return _Interval(-math.inf, False, value, False)
    if operator == "<=":
        return _Interval(-math.inf, False, value, True)
    return None


def find_contradictions(conditions: Sequence[ConditionDef], *, exhaustive: bool = False) -> List[ConditionPair]:
    """Return every contradictory pair, grouped by variable in first-seen order."""
    by_variable: Dict[str, List[ConditionDef]] = {}
    for condition in conditions:
        by_variable.setdefault(condition.variable_id, []).append(condition)
    pairs: List[ConditionPair] = []
    for group in by_variable.values():
        for i in range(len(group)):
            for j in range(i + 1, len(group)):
                if are_contradictory(group[i], group[j], exhaustive=exhaustive):
                    pairs.append((group[i], group[j]))
    return pairs


def describe_pair(pair: ConditionPair) -> str:
    first, second = pair
    return (
        f"{first.variable_id} {first.operator} {_render_value(first.value)}"
        f" vs {second.operator} {_render_value(second.value)}"
    )


def _render_value(value: object) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
