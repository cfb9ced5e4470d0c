"""Static analysis of story graphs: dependencies, reachability and conflicts."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Collection, Dict, Iterable, List, Sequence, Tuple

from storyloom.core.types import ConflictKind, Severity
from storyloom.domain.defs import ConditionDef, StoryGraphDef
from storyloom.services.condition_conflicts import describe_pair, find_contradictions

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StateDependency:
    node_id: str
    depends_on: Tuple[str, ...]
    modifies: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Conflict:
    id: str
    kind: ConflictKind
    severity: Severity
    node_ids: Tuple[str, ...]
    message: str
    edge_ids: Tuple[str, ...] = ()
    suggestion: str | None = None


def format_conflict(conflict: Conflict) -> str:
    targets = " ".join(f"node={node_id}" for node_id in conflict.node_ids if node_id)
    targets += "".join(f" edge={edge_id}" for edge_id in conflict.edge_ids)
    suffix = f" ({targets.strip()})" if targets.strip() else ""
    return f"[{conflict.severity}] {conflict.kind}: {conflict.message}{suffix}"


def conflict_to_dict(conflict: Conflict) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "id": conflict.id,
        "type": conflict.kind,
        "severity": conflict.severity,
        "nodeIds": list(conflict.node_ids),
        "message": conflict.message,
    }
    if conflict.edge_ids:
        payload["edgeIds"] = list(conflict.edge_ids)
    if conflict.suggestion:
        payload["suggestion"] = conflict.suggestion
    return payload


def summarize_conflicts(conflicts: Iterable[Conflict]) -> Dict[str, int]:
    counts = {"error": 0, "warning": 0}
    for conflict in conflicts:
        counts[conflict.severity] = counts.get(conflict.severity, 0) + 1
    return counts


def extract_dependencies(graph: StoryGraphDef) -> List[StateDependency]:
    """Return, per scene, the variables its rules read and write.

    Scene rules come first, followed by each option's rules in order.
    """
    dependencies: List[StateDependency] = []
    for node in graph.nodes:
        depends_on = [condition.variable_id for condition in node.preconditions]
        modifies = [effect.variable_id for effect in node.effects]
        for option in node.options:
            depends_on.extend(condition.variable_id for condition in option.conditions)
            modifies.extend(effect.variable_id for effect in option.effects)
        dependencies.append(
            StateDependency(node_id=node.id, depends_on=tuple(depends_on), modifies=tuple(modifies))
        )
    return dependencies


def _root_ids(graph: StoryGraphDef) -> List[str]:
    targets = {edge.target for edge in graph.edges}
    roots = [node.id for node in graph.nodes if node.id not in targets]
    if not roots and graph.nodes:
        return [graph.nodes[0].id]
    return roots


def reachable_node_ids(graph: StoryGraphDef) -> set[str]:
    """Return every id reached by a breadth-first walk from the root scenes.

    Roots are scenes with no incoming edge; a graph without any falls back to
    its first scene. Dangling edge targets are visited but lead nowhere.
    """
    adjacency: Dict[str, List[str]] = {}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
    visited: set[str] = set()
    queue = deque(_root_ids(graph))
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for target in adjacency.get(current, []):
            if target not in visited:
                queue.append(target)
    return visited


def is_reachable(target_id: str, graph: StoryGraphDef) -> bool:
    """Return True when ``target_id`` is reached from the root scenes."""
    return target_id in reachable_node_ids(graph)


def detect_conflicts(
    graph: StoryGraphDef,
    *,
    ending_tags: Collection[str] | None = None,
    exhaustive: bool = False,
) -> List[Conflict]:
    """Run every structural and logical check over ``graph``.

    Conflicts come back grouped by check: unreachable scenes, dead ends,
    contradictory scene preconditions, contradictory edge conditions.

    The dead-end check flags every non-pool scene that has incoming edges but
    no outgoing ones, which includes deliberate endings. Pass ``ending_tags``
    to exempt scenes carrying any of those tags. ``exhaustive`` widens the
    contradiction checks to interval arithmetic over all operators.

    Never raises: a half-edited graph yields the conflicts that can be
    determined from it.
    """
    conflicts: List[Conflict] = []
    _check_unreachable(graph, conflicts)
    _check_dead_ends(graph, conflicts, ending_tags=ending_tags)
    _check_node_contradictions(graph, conflicts, exhaustive=exhaustive)
    _check_edge_contradictions(graph, conflicts, exhaustive=exhaustive)
    logger.debug(
        "Detected %d conflicts over %d nodes and %d edges",
        len(conflicts),
        len(graph.nodes),
        len(graph.edges),
    )
    return conflicts


def _check_unreachable(graph: StoryGraphDef, conflicts: List[Conflict]) -> None:
    reachable = reachable_node_ids(graph)
    for node in graph.nodes:
        if node.id in reachable:
            continue
        conflicts.append(
            Conflict(
                id=f"unreachable-{node.id}",
                kind="unreachable",
                severity="warning",
                node_ids=(node.id,),
                message=f'Scene "{node.label}" cannot be reached from any start scene.',
                suggestion="Add an incoming edge or delete the scene.",
            )
        )


def _check_dead_ends(
    graph: StoryGraphDef,
    conflicts: List[Conflict],
    *,
    ending_tags: Collection[str] | None,
) -> None:
    sources = {edge.source for edge in graph.edges}
    targets = {edge.target for edge in graph.edges}
    exempt_tags = set(ending_tags or ())
    for node in graph.nodes:
        if node.id in sources or node.id not in targets or node.is_pool_member:
            continue
        if exempt_tags and exempt_tags.intersection(node.tags):
            continue
        conflicts.append(
            Conflict(
                id=f"deadend-{node.id}",
                kind="dead_end",
                severity="warning",
                node_ids=(node.id,),
                message=f'Scene "{node.label}" has no outgoing edge (narrative dead end).',
                suggestion="Add an outgoing edge or mark the scene as an ending.",
            )
        )


def _check_node_contradictions(
    graph: StoryGraphDef, conflicts: List[Conflict], *, exhaustive: bool
) -> None:
    for node in graph.nodes:
        details = _contradiction_details(node.preconditions, exhaustive=exhaustive)
        if not details:
            continue
        conflicts.append(
            Conflict(
                id=f"contradiction-{node.id}",
                kind="contradictory",
                severity="error",
                node_ids=(node.id,),
                message=f'Scene "{node.label or node.id}" has contradictory preconditions: {", ".join(details)}',
                suggestion="Remove or change the conflicting conditions.",
            )
        )


def _check_edge_contradictions(
    graph: StoryGraphDef, conflicts: List[Conflict], *, exhaustive: bool
) -> None:
    for edge in graph.edges:
        if not edge.conditions:
            continue
        details = _contradiction_details(edge.conditions, exhaustive=exhaustive)
        if not details:
            continue
        conflicts.append(
            Conflict(
                id=f"edge-contradiction-{edge.id}",
                kind="contradictory",
                severity="error",
                node_ids=(edge.source, edge.target),
                edge_ids=(edge.id,),
                message=f"Edge has contradictory conditions: {', '.join(details)}",
                suggestion="Remove or change the conflicting conditions.",
            )
        )


def _contradiction_details(conditions: Sequence[ConditionDef], *, exhaustive: bool) -> List[str]:
    return [describe_pair(pair) for pair in find_contradictions(conditions, exhaustive=exhaustive)]
