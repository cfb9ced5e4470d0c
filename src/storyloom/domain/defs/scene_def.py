"""Scene node definitions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .rule_def import ConditionDef, EffectDef


@dataclass(slots=True)
class ChoiceOptionDef:
    """Player-facing option shown inside a scene with choices."""

    id: str
    text: str
    target_id: str | None = None
    conditions: List[ConditionDef] = field(default_factory=list)
    effects: List[EffectDef] = field(default_factory=list)


@dataclass(slots=True)
class SceneNodeDef:
    """Unit of narrative content.

    Preconditions gate entry into the scene during simulation and effects fire
    when it is entered.
    """

    id: str
    label: str
    content: str | None = None
    location: str | None = None
    preconditions: List[ConditionDef] = field(default_factory=list)
    effects: List[EffectDef] = field(default_factory=list)
    options: List[ChoiceOptionDef] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    is_pool_member: bool = False
    has_choice: bool = False
    is_branch: bool = False
    branch_choice_index: int | None = None
