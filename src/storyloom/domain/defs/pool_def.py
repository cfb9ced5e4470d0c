"""Pool definitions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from storyloom.core.types import WeightPolicy


@dataclass(slots=True)
class PoolDef:
    """Declarative grouping of side-content scenes."""

    id: str
    name: str
    member_ids: List[str] = field(default_factory=list)
    cooldown: int = 0
    weight_policy: WeightPolicy = "uniform"
