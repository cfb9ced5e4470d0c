"""Edge definitions linking scenes."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from .rule_def import ConditionDef, EffectDef


class EdgeKind(Enum):
    """How an edge was authored in the editor."""

    FLOW = "FLOW"
    OPTION = "OPTION"
    TRIGGER = "TRIGGER"
    CONSTRAINT = "CONSTRAINT"


@dataclass(slots=True)
class EdgeDef:
    """Directed link between two scenes.

    ``conditions`` is ``None`` when the edge declares no rules of its own.
    ``weight`` only matters for pool rolls.
    """

    id: str
    source: str
    target: str
    kind: EdgeKind = EdgeKind.FLOW
    label: str | None = None
    weight: float | None = None
    conditions: List[ConditionDef] | None = None
    effects: List[EffectDef] | None = None
