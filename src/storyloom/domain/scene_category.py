"""Topology-derived scene categories."""
from __future__ import annotations

from enum import Enum

from storyloom.domain.defs import SceneNodeDef, StoryGraphDef


class SceneCategory(Enum):
    """Category of a scene derived from its connections."""

    STANDARD = "STANDARD"
    FREE = "FREE"
    START = "START"
    END = "END"
    BRANCH = "BRANCH"


def classify_scene(node_id: str, graph: StoryGraphDef) -> SceneCategory:
    """Return the category of ``node_id`` from the current graph topology.

    Branch scenes are reported as BRANCH regardless of their edges. An id that
    matches no scene is classified from its edges alone, which is FREE when
    nothing references it.
    """
    node = graph.find_node(node_id)
    if node is not None and node.is_branch:
        return SceneCategory.BRANCH
    has_incoming = any(edge.target == node_id for edge in graph.edges)
    has_outgoing = any(edge.source == node_id for edge in graph.edges)
    return _category_from_degree(has_incoming, has_outgoing)


def classify_all(graph: StoryGraphDef) -> dict[str, SceneCategory]:
    """Classify every scene in one pass over the edges."""
    targets = {edge.target for edge in graph.edges}
    sources = {edge.source for edge in graph.edges}
    categories: dict[str, SceneCategory] = {}
    for node in graph.nodes:
        if node.id in categories:
            continue
        if node.is_branch:
            categories[node.id] = SceneCategory.BRANCH
        else:
            categories[node.id] = _category_from_degree(node.id in targets, node.id in sources)
    return categories


def find_start_node(graph: StoryGraphDef) -> SceneNodeDef | None:
    """Return the first scene classified as START, if any."""
    for node in graph.nodes:
        if classify_scene(node.id, graph) is SceneCategory.START:
            return node
    return None


def _category_from_degree(has_incoming: bool, has_outgoing: bool) -> SceneCategory:
    if has_incoming and has_outgoing:
        return SceneCategory.STANDARD
    if has_outgoing:
        return SceneCategory.START
    if has_incoming:
        return SceneCategory.END
    return SceneCategory.FREE
