"""Service layer exports."""

from .graph_analyzer import (
    Conflict,
    StateDependency,
    detect_conflicts,
    extract_dependencies,
    format_conflict,
    is_reachable,
)
from .simulation_service import (
    NodeEnteredEvent,
    PoolRolledEvent,
    SimulationService,
    SimulationView,
    StepResult,
    Transition,
    VariableChangedEvent,
)

__all__ = [
    "Conflict",
    "NodeEnteredEvent",
    "PoolRolledEvent",
    "SimulationService",
    "SimulationView",
    "StateDependency",
    "StepResult",
    "Transition",
    "VariableChangedEvent",
    "detect_conflicts",
    "extract_dependencies",
    "format_conflict",
    "is_reachable",
]
