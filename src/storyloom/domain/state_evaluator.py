"""Condition evaluation and effect application over variable snapshots."""
from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Sequence

from storyloom.domain.coercion import is_truthy, loose_equals, normalize_number, to_number
from storyloom.domain.defs import ConditionDef, EffectDef, VariableDef

_ORDERING: Dict[str, Callable[[float, float], bool]] = {
    ">": lambda left, right: left > right,
    "<": lambda left, right: left < right,
    ">=": lambda left, right: left >= right,
    "<=": lambda left, right: left <= right,
}


def _find_variable(variable_id: str, variables: Sequence[VariableDef]) -> VariableDef | None:
    return next((var for var in variables if var.id == variable_id), None)


def evaluate_condition(condition: ConditionDef, variables: Sequence[VariableDef]) -> bool:
    """Evaluate one condition against the snapshot.

    A condition on a variable that is not in the snapshot is never satisfied.
    Unknown operators pass.
    """
    variable = _find_variable(condition.variable_id, variables)
    if variable is None:
        return False
    current = variable.current_value
    target = condition.value
    if condition.operator == "==":
        return loose_equals(current, target)
    if condition.operator == "!=":
        return not loose_equals(current, target)
    compare = _ORDERING.get(condition.operator)
    if compare is None:
        return True
    return compare(to_number(current), to_number(target))


def evaluate_conditions(conditions: Iterable[ConditionDef], variables: Sequence[VariableDef]) -> bool:
    """Return True when every condition holds (vacuously True when empty)."""
    return all(evaluate_condition(condition, variables) for condition in conditions)


def clone_variables(variables: Iterable[VariableDef]) -> List[VariableDef]:
    """Return a snapshot made of fresh variable objects."""
    return [replace(var) for var in variables]


def reset_variables(variables: Iterable[VariableDef]) -> List[VariableDef]:
    """Return a snapshot with every variable back at its default value."""
    return [replace(var, current_value=var.default_value) for var in variables]


def apply_effect(effect: EffectDef, variables: Sequence[VariableDef]) -> List[VariableDef]:
    """Apply one effect and return the resulting snapshot.

    The input snapshot is left untouched. Effects on unknown variables and
    unknown operations produce an unchanged copy.
    """
    snapshot = clone_variables(variables)
    for index, var in enumerate(snapshot):
        if var.id != effect.variable_id:
            continue
        snapshot[index] = replace(var, current_value=_next_value(effect, var))
        break
    return snapshot


def apply_effects(effects: Iterable[EffectDef], variables: Sequence[VariableDef]) -> List[VariableDef]:
    """Apply effects left to right, each seeing the previous result."""
    snapshot = clone_variables(variables)
    for effect in effects:
        snapshot = apply_effect(effect, snapshot)
    return snapshot


def _next_value(effect: EffectDef, variable: VariableDef):
    operation = effect.operation
    if operation == "set":
        return effect.value
    if operation == "add":
        return normalize_number(to_number(variable.current_value) + to_number(effect.value))
    if operation == "subtract":
        return normalize_number(to_number(variable.current_value) - to_number(effect.value))
    if operation == "toggle":
        return not is_truthy(variable.current_value)
    return variable.current_value
