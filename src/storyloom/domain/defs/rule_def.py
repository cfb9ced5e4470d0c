"""Condition and effect definitions shared by nodes, options and edges."""
from __future__ import annotations

from dataclasses import dataclass

from storyloom.core.types import RuleValue


@dataclass(slots=True)
class ConditionDef:
    """Predicate over a single variable.

    ``operator`` is normally one of ``==``, ``!=``, ``>``, ``<``, ``>=``, ``<=``;
    any other string is kept as authored and evaluates permissively.
    """

    variable_id: str
    operator: str
    value: RuleValue = None


@dataclass(slots=True)
class EffectDef:
    """Mutation applied to a single variable (set, add, subtract or toggle)."""

    variable_id: str
    operation: str
    value: RuleValue = None
