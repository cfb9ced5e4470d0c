"""Interactive simulation of a story graph."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from storyloom.core.rng import RNG
from storyloom.domain.defs import EdgeDef, SceneNodeDef, StoryGraphDef, VariableDef
from storyloom.domain.scene_category import SceneCategory, classify_scene, find_start_node
from storyloom.domain.simulation_state import SimulationState
from storyloom.domain.state_evaluator import apply_effects, evaluate_conditions, reset_variables

logger = logging.getLogger(__name__)

DEFAULT_EDGE_WEIGHT = 10
TRACE_INITIALIZED = "Timeline initialized."
TRACE_POOL_ROLL = "[Roll: Selection from Random Pool]"


@dataclass(slots=True)
class Transition:
    """Legal move out of the current scene."""

    edge: EdgeDef
    target: SceneNodeDef

    @property
    def label(self) -> str:
        return self.edge.label or self.target.label


@dataclass(slots=True)
class SimulationView:
    """Data returned to the presentation layer for rendering."""

    node_id: str
    label: str
    content: str | None
    location: str | None
    category: SceneCategory
    transitions: List[str]
    variables: List[Tuple[str, object]]

    @property
    def is_terminal(self) -> bool:
        return not self.transitions


@dataclass(slots=True)
class SimulationEvent:
    """Base class for simulation events."""


@dataclass(slots=True)
class NodeEnteredEvent(SimulationEvent):
    node_id: str
    label: str


@dataclass(slots=True)
class VariableChangedEvent(SimulationEvent):
    variable_id: str
    previous: object
    current: object


@dataclass(slots=True)
class PoolRolledEvent(SimulationEvent):
    source_id: str
    edge_id: str
    draw: float
    total_weight: float


@dataclass(slots=True)
class StepResult:
    """Result returned after a step or a pool roll."""

    advanced: bool = False
    events: List[SimulationEvent] = field(default_factory=list)
    view: SimulationView | None = None


def edge_weight(edge: EdgeDef) -> float:
    """Return the roll weight of an edge; missing or zero weights count as 10."""
    return edge.weight or DEFAULT_EDGE_WEIGHT


def select_weighted_edge(edges: Sequence[EdgeDef], draw: float) -> EdgeDef:
    """Roulette-wheel selection of the edge whose span contains ``draw``.

    ``draw`` is expected in ``[0, total weight)``. A draw landing exactly on a
    boundary belongs to the later edge. Draws past the end fall back to the
    first edge.
    """
    if not edges:
        raise ValueError("Cannot select from an empty edge list.")
    remaining = draw
    for edge in edges:
        weight = edge_weight(edge)
        if remaining < weight:
            return edge
        remaining -= weight
    return edges[0]


class SimulationService:
    """Application service that walks a story graph one scene at a time.

    Edge-level conditions and effects are ignored unless ``honor_edge_rules``
    is set; only the target scene's own preconditions and effects apply.
    """

    def __init__(self, graph: StoryGraphDef, *, honor_edge_rules: bool = False) -> None:
        self._graph = graph
        self._honor_edge_rules = honor_edge_rules

    @property
    def graph(self) -> StoryGraphDef:
        return self._graph

    def new_session(self, seed: int) -> SimulationState:
        """Create a fresh run positioned at the entry scene."""
        state = SimulationState(seed=seed, rng=RNG(seed))
        self.reset(state)
        return state

    def reset(self, state: SimulationState) -> None:
        """Rewind ``state`` to the entry scene with default variable values.

        The entry scene is the first scene classified as START. Without one
        the run stays idle.
        """
        start = find_start_node(self._graph)
        state.current_node_id = start.id if start is not None else None
        state.variables = reset_variables(self._graph.variables)
        state.trace = [TRACE_INITIALIZED]
        logger.debug("Simulation reset: entry=%s seed=%s", state.current_node_id, state.seed)

    def available_transitions(self, state: SimulationState) -> List[Transition]:
        """Return outgoing edges whose target exists and accepts the current state."""
        if state.current_node_id is None:
            return []
        transitions: List[Transition] = []
        for edge in self._graph.outgoing_edges(state.current_node_id):
            target = self._graph.find_node(edge.target)
            if target is None:
                continue
            if not evaluate_conditions(target.preconditions, state.variables):
                continue
            if self._honor_edge_rules and not evaluate_conditions(edge.conditions or [], state.variables):
                continue
            transitions.append(Transition(edge=edge, target=target))
        return transitions

    def is_terminal(self, state: SimulationState) -> bool:
        return state.current_node_id is not None and not self.available_transitions(state)

    def get_current_view(self, state: SimulationState) -> SimulationView | None:
        if state.current_node_id is None:
            return None
        node = self._graph.find_node(state.current_node_id)
        if node is None:
            return None
        return SimulationView(
            node_id=node.id,
            label=node.label,
            content=node.content,
            location=node.location,
            category=classify_scene(node.id, self._graph),
            transitions=[transition.label for transition in self.available_transitions(state)],
            variables=[(var.name, var.current_value) for var in state.variables],
        )

    def step(self, state: SimulationState, target_id: str, *, edge_id: str | None = None) -> StepResult:
        """Enter ``target_id`` and apply its effects.

        An id that matches no scene leaves the state untouched.
        """
        target = self._graph.find_node(target_id)
        if target is None:
            logger.debug("Ignoring step to missing scene %s", target_id)
            return StepResult(advanced=False, view=self.get_current_view(state))
        effects = list(target.effects)
        if self._honor_edge_rules and edge_id is not None:
            edge = self._graph.find_edge(edge_id)
            if edge is not None and edge.target == target_id:
                effects = list(edge.effects or []) + effects
        previous = state.variables
        state.current_node_id = target.id
        state.variables = apply_effects(effects, previous)
        state.trace.append(f"Beat: {target.label}")
        events: List[SimulationEvent] = [NodeEnteredEvent(node_id=target.id, label=target.label)]
        events.extend(_variable_changes(previous, state.variables))
        logger.debug("Entered scene %s", target.id)
        return StepResult(advanced=True, events=events, view=self.get_current_view(state))

    def choose(self, state: SimulationState, index: int) -> StepResult:
        """Take the transition at ``index`` of ``available_transitions``."""
        transitions = self.available_transitions(state)
        if not transitions:
            raise ValueError(f"Scene '{state.current_node_id}' has no transitions to select.")
        try:
            selected = transitions[index]
        except IndexError as exc:
            raise IndexError(
                f"Transition index {index} is invalid for scene '{state.current_node_id}'."
            ) from exc
        return self.step(state, selected.target.id, edge_id=selected.edge.id)

    def pool_roll(self, state: SimulationState, source_id: str | None = None) -> StepResult:
        """Pick one outgoing edge of ``source_id`` at random by weight and follow it.

        Defaults to the current scene. Target preconditions are not consulted.
        A source without outgoing edges is a no-op.
        """
        source = source_id if source_id is not None else state.current_node_id
        edges = self._graph.outgoing_edges(source) if source is not None else []
        if not edges:
            return StepResult(advanced=False, view=self.get_current_view(state))
        total_weight = sum(edge_weight(edge) for edge in edges)
        draw = state.rng.uniform_below(total_weight)
        selected = select_weighted_edge(edges, draw)
        logger.debug("Pool roll from %s: draw=%.3f total=%s edge=%s", source, draw, total_weight, selected.id)
        state.trace.append(TRACE_POOL_ROLL)
        result = self.step(state, selected.target, edge_id=selected.id)
        result.events.insert(
            0,
            PoolRolledEvent(source_id=source, edge_id=selected.id, draw=draw, total_weight=total_weight),
        )
        return result


def _variable_changes(
    before: Sequence[VariableDef], after: Sequence[VariableDef]
) -> List[VariableChangedEvent]:
    changes: List[VariableChangedEvent] = []
    for old, new in zip(before, after):
        if _same_value(old.current_value, new.current_value):
            continue
        changes.append(
            VariableChangedEvent(variable_id=new.id, previous=old.current_value, current=new.current_value)
        )
    return changes


def _same_value(previous: object, current: object) -> bool:
    if type(previous) is not type(current):
        return False
    if isinstance(current, float) and math.isnan(previous) and math.isnan(current):
        return True
    return previous == current
