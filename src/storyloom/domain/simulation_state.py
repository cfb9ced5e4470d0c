"""Domain-level simulation state tracking."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from storyloom.core.rng import RNG
from storyloom.domain.defs import VariableDef


@dataclass
class SimulationState:
    """State of one simulation run, held by the caller between steps.

    ``current_node_id`` is ``None`` while the run is idle (no entry scene).
    ``variables`` is the run's own snapshot and never aliases the graph's
    design-time variables.
    """

    seed: int
    rng: RNG
    current_node_id: str | None = None
    variables: List[VariableDef] = field(default_factory=list)
    trace: List[str] = field(default_factory=list)

    @property
    def is_idle(self) -> bool:
        return self.current_node_id is None

    def variable_value(self, variable_id: str):
        for var in self.variables:
            if var.id == variable_id:
                return var.current_value
        raise KeyError(variable_id)
