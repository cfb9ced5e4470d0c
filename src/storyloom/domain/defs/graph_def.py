"""Story graph container."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .edge_def import EdgeDef
from .pool_def import PoolDef
from .scene_def import SceneNodeDef
from .variable_def import VariableDef


@dataclass(slots=True)
class StoryGraphDef:
    """Snapshot of an authored story graph.

    The graph may be mid-edit: ids can repeat and edges can point at scenes
    that do not exist. Lookups return the first match or ``None``.
    """

    nodes: List[SceneNodeDef] = field(default_factory=list)
    edges: List[EdgeDef] = field(default_factory=list)
    variables: List[VariableDef] = field(default_factory=list)
    pools: List[PoolDef] = field(default_factory=list)

    def find_node(self, node_id: str) -> SceneNodeDef | None:
        return next((node for node in self.nodes if node.id == node_id), None)

    def find_edge(self, edge_id: str) -> EdgeDef | None:
        return next((edge for edge in self.edges if edge.id == edge_id), None)

    def outgoing_edges(self, node_id: str) -> list[EdgeDef]:
        return [edge for edge in self.edges if edge.source == node_id]
