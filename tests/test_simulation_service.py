import math

import pytest

from storyloom.domain.defs import StoryGraphDef, VariableDef
from storyloom.domain.scene_category import SceneCategory
from storyloom.domain.simulation_state import SimulationState
from storyloom.services import (
    NodeEnteredEvent,
    PoolRolledEvent,
    SimulationService,
    VariableChangedEvent,
)
from storyloom.services.simulation_service import (
    TRACE_INITIALIZED,
    TRACE_POOL_ROLL,
    edge_weight,
    select_weighted_edge,
)
from tests.helpers.fixed_rng import FixedRNG
from tests.helpers.graph_builders import bool_var, chain_graph, cond, edge, eff, number_var, scene


def _pool_graph(*weights) -> StoryGraphDef:
    targets = [f"t{index}" for index in range(len(weights))]
    return StoryGraphDef(
        nodes=[scene("hub")] + [scene(target) for target in targets],
        edges=[
            edge("hub", target, id=f"e{index}", weight=weight)
            for index, (target, weight) in enumerate(zip(targets, weights))
        ],
    )


def _fixed_state(service: SimulationService, fraction: float) -> SimulationState:
    state = SimulationState(seed=0, rng=FixedRNG(fraction))
    service.reset(state)
    return state


def test_step_applies_target_effects() -> None:
    graph = chain_graph("s", "m", "e", variables=[number_var("trust", 0)])
    graph.nodes[1].effects = [eff("trust", "add", 10)]
    service = SimulationService(graph)
    state = service.new_session(seed=1)

    result = service.choose(state, 0)

    assert result.advanced
    assert state.current_node_id == "m"
    assert state.variable_value("trust") == 10
    assert graph.variables[0].current_value == 0
    assert result.events == [
        NodeEnteredEvent(node_id="m", label="M"),
        VariableChangedEvent(variable_id="trust", previous=0, current=10),
    ]


def test_transitions_filtered_by_target_preconditions_only() -> None:
    graph = StoryGraphDef(
        nodes=[
            scene("s"),
            scene("locked", preconditions=[cond("trust", ">", 5)]),
            scene("open"),
        ],
        edges=[
            edge("s", "locked"),
            edge("s", "open", conditions=[cond("trust", ">", 50)], effects=[eff("trust", "set", 99)]),
        ],
        variables=[number_var("trust", 0)],
    )
    service = SimulationService(graph)
    state = service.new_session(seed=1)

    transitions = service.available_transitions(state)

    assert [transition.target.id for transition in transitions] == ["open"]
    service.choose(state, 0)
    assert state.variable_value("trust") == 0


def test_honor_edge_rules_gates_and_applies_edge_effects() -> None:
    graph = StoryGraphDef(
        nodes=[scene("s"), scene("a", effects=[eff("trust", "add", 1)]), scene("b")],
        edges=[
            edge("s", "a", effects=[eff("trust", "set", 5)]),
            edge("s", "b", conditions=[cond("trust", ">", 50)]),
        ],
        variables=[number_var("trust", 0)],
    )
    service = SimulationService(graph, honor_edge_rules=True)
    state = service.new_session(seed=1)

    assert [transition.target.id for transition in service.available_transitions(state)] == ["a"]
    service.choose(state, 0)
    assert state.variable_value("trust") == 6


def test_reset_picks_first_start_and_restores_defaults() -> None:
    graph = chain_graph("s", "m", variables=[number_var("trust", 3)])
    graph.nodes[0].effects = [eff("trust", "set", 50)]
    graph.nodes.insert(0, scene("loose"))
    service = SimulationService(graph)
    state = service.new_session(seed=7)
    service.choose(state, 0)
    state.variables[0].current_value = 42

    service.reset(state)

    assert state.current_node_id == "s"
    assert state.variable_value("trust") == 3
    assert state.trace == [TRACE_INITIALIZED]


def test_reset_without_start_is_idle() -> None:
    graph = StoryGraphDef(nodes=[scene("a"), scene("b")], edges=[edge("a", "b"), edge("b", "a")])
    service = SimulationService(graph)

    state = service.new_session(seed=1)

    assert state.is_idle
    assert service.available_transitions(state) == []
    assert service.get_current_view(state) is None
    assert not service.is_terminal(state)


def test_step_to_missing_scene_is_noop() -> None:
    graph = chain_graph("s", "e", variables=[bool_var("flag")])
    service = SimulationService(graph)
    state = service.new_session(seed=1)

    result = service.step(state, "ghost")

    assert not result.advanced
    assert state.current_node_id == "s"
    assert state.trace == [TRACE_INITIALIZED]


def test_dangling_edges_are_not_transitions() -> None:
    graph = chain_graph("s", "e")
    graph.edges.append(edge("s", "ghost"))
    service = SimulationService(graph)
    state = service.new_session(seed=1)

    assert [transition.target.id for transition in service.available_transitions(state)] == ["e"]


def test_trace_and_view() -> None:
    graph = chain_graph("s", "m", "e", variables=[number_var("trust", 0)])
    graph.edges[0].label = "Walk on"
    service = SimulationService(graph)
    state = service.new_session(seed=1)

    view = service.get_current_view(state)
    assert view is not None
    assert view.category is SceneCategory.START
    assert view.transitions == ["Walk on"]
    assert view.variables == [("Trust", 0)]

    service.choose(state, 0)
    service.choose(state, 0)

    assert state.trace == [TRACE_INITIALIZED, "Beat: M", "Beat: E"]
    assert service.is_terminal(state)
    assert service.get_current_view(state).is_terminal


def test_choose_rejects_bad_index() -> None:
    service = SimulationService(chain_graph("s", "e"))
    state = service.new_session(seed=1)

    with pytest.raises(IndexError):
        service.choose(state, 3)

    service.choose(state, 0)
    with pytest.raises(ValueError):
        service.choose(state, 0)


def test_edge_weight_defaults() -> None:
    assert edge_weight(edge("a", "b")) == 10
    assert edge_weight(edge("a", "b", weight=0)) == 10
    assert edge_weight(edge("a", "b", weight=25)) == 25


def test_select_weighted_edge_boundaries() -> None:
    edges = _pool_graph(10, 10, 80).edges

    assert select_weighted_edge(edges, 0).id == "e0"
    assert select_weighted_edge(edges, 9.99).id == "e0"
    assert select_weighted_edge(edges, 10).id == "e1"
    assert select_weighted_edge(edges, 19.99).id == "e1"
    assert select_weighted_edge(edges, 20).id == "e2"
    assert select_weighted_edge(edges, 99.99).id == "e2"
    assert select_weighted_edge(edges, 150).id == "e0"
    with pytest.raises(ValueError):
        select_weighted_edge([], 1)


def test_pool_roll_follows_drawn_edge() -> None:
    service = SimulationService(_pool_graph(10, 10, 80))
    state = _fixed_state(service, 0.25)

    result = service.pool_roll(state)

    assert result.advanced
    assert state.current_node_id == "t2"
    assert state.trace == [TRACE_INITIALIZED, TRACE_POOL_ROLL, "Beat: T2"]
    assert result.events[0] == PoolRolledEvent(source_id="hub", edge_id="e2", draw=25.0, total_weight=100)


@pytest.mark.parametrize(
    ("fraction", "expected"),
    [(0.05, "t0"), (0.1, "t1"), (0.15, "t1"), (0.2, "t2"), (0.95, "t2")],
)
def test_pool_roll_cumulative_spans(fraction: float, expected: str) -> None:
    service = SimulationService(_pool_graph(10, 10, 80))
    state = _fixed_state(service, fraction)

    service.pool_roll(state)

    assert state.current_node_id == expected


def test_pool_roll_ignores_target_preconditions() -> None:
    graph = _pool_graph(10)
    graph.nodes[1].preconditions = [cond("missing", "==", 1)]
    service = SimulationService(graph)
    state = _fixed_state(service, 0.5)

    assert service.available_transitions(state) == []
    assert service.pool_roll(state).advanced
    assert state.current_node_id == "t0"


def test_pool_roll_without_edges_is_noop() -> None:
    service = SimulationService(chain_graph("s", "e"))
    state = service.new_session(seed=3)
    service.choose(state, 0)

    result = service.pool_roll(state)

    assert not result.advanced
    assert state.trace == [TRACE_INITIALIZED, "Beat: E"]


def test_same_seed_replays_same_rolls() -> None:
    graph = _pool_graph(10, 10, 80)
    service = SimulationService(graph)
    first = service.new_session(seed=1234)
    second = service.new_session(seed=1234)

    for _ in range(5):
        service.pool_roll(first, "hub")
        service.pool_roll(second, "hub")

    assert first.current_node_id == second.current_node_id
    assert first.trace == second.trace


def test_value_that_became_nan_is_reported_once() -> None:
    mood = VariableDef(id="mood", name="Mood", kind="string", default_value="abc", current_value="abc")
    graph = chain_graph("s", "m", "e", variables=[mood])
    graph.nodes[1].effects = [eff("mood", "add", 1)]
    service = SimulationService(graph)
    state = service.new_session(seed=1)

    entered_m = service.choose(state, 0)
    entered_e = service.choose(state, 0)

    changes = [event for event in entered_m.events if isinstance(event, VariableChangedEvent)]
    assert len(changes) == 1
    assert changes[0].previous == "abc"
    assert math.isnan(changes[0].current)
    assert [event for event in entered_e.events if isinstance(event, VariableChangedEvent)] == []
