"""Variable definitions tracked by the narrative state."""
from __future__ import annotations

from dataclasses import dataclass

from storyloom.core.types import RuleValue, VariableKind


@dataclass(slots=True)
class VariableDef:
    """Typed piece of world state.

    ``min``/``max`` only matter for numeric variables and are advisory: the
    evaluator never clamps against them.
    """

    id: str
    name: str
    kind: VariableKind
    default_value: RuleValue
    current_value: RuleValue
    min: float | None = None
    max: float | None = None
