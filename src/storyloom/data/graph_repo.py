"""Loading and dumping story graphs in the editor's JSON layout."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

from storyloom.data import paths
from storyloom.data.errors import DataValidationError
from storyloom.data.json_loader import load_json
from storyloom.domain.defs import (
    ChoiceOptionDef,
    ConditionDef,
    EdgeDef,
    EdgeKind,
    EffectDef,
    PoolDef,
    SceneNodeDef,
    StoryGraphDef,
    VariableDef,
)

logger = logging.getLogger(__name__)

_VARIABLE_KINDS = ("boolean", "number", "string")
_WEIGHT_POLICIES = ("uniform", "weighted")
_SCALAR_TYPES = (bool, int, float, str, type(None))


class GraphRepository:
    """Loads a story graph file once and caches the parsed graph."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else paths.get_sample_graph_path()
        self._graph: StoryGraphDef | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> StoryGraphDef:
        if self._graph is None:
            self._graph = parse_graph(load_json(self._path))
            logger.debug(
                "Loaded graph %s: %d nodes, %d edges, %d variables",
                self._path,
                len(self._graph.nodes),
                len(self._graph.edges),
                len(self._graph.variables),
            )
        return self._graph


def load_graph(path: Path | str) -> StoryGraphDef:
    """Read and parse a graph file."""
    return GraphRepository(path).get()


def parse_graph(raw: object) -> StoryGraphDef:
    """Convert decoded graph JSON into definitions.

    Only structure is validated. Dangling references and duplicate ids are
    kept as authored; analysis reports on them instead.
    """
    data = _require_mapping(raw, "graph")
    return StoryGraphDef(
        nodes=[
            _parse_node(entry, f"nodes[{index}]")
            for index, entry in enumerate(_optional_list(data.get("nodes"), "graph nodes"))
        ],
        edges=[
            _parse_edge(entry, f"edges[{index}]")
            for index, entry in enumerate(_optional_list(data.get("edges"), "graph edges"))
        ],
        variables=[
            _parse_variable(entry, f"variables[{index}]")
            for index, entry in enumerate(_optional_list(data.get("variables"), "graph variables"))
        ],
        pools=[
            _parse_pool(entry, f"pools[{index}]")
            for index, entry in enumerate(_optional_list(data.get("pools"), "graph pools"))
        ],
    )


def _parse_variable(raw: object, context: str) -> VariableDef:
    data = _require_mapping(raw, context)
    kind = data.get("kind", data.get("type"))
    if kind not in _VARIABLE_KINDS:
        raise DataValidationError(f"{context} type must be one of {', '.join(_VARIABLE_KINDS)}.")
    default_value = _require_scalar(data.get("defaultValue"), f"{context} defaultValue")
    return VariableDef(
        id=_require_str(data.get("id"), f"{context} id"),
        name=_optional_str(data.get("name"), f"{context} name") or "",
        kind=kind,
        default_value=default_value,
        current_value=_require_scalar(data.get("currentValue", default_value), f"{context} currentValue"),
        min=_optional_number(data.get("min"), f"{context} min"),
        max=_optional_number(data.get("max"), f"{context} max"),
    )


def _parse_conditions(raw: object, context: str) -> List[ConditionDef]:
    conditions: List[ConditionDef] = []
    for index, entry in enumerate(_optional_list(raw, context)):
        entry_ctx = f"{context}[{index}]"
        data = _require_mapping(entry, entry_ctx)
        conditions.append(
            ConditionDef(
                variable_id=_require_str(data.get("variableId"), f"{entry_ctx} variableId"),
                operator=_require_str(data.get("operator"), f"{entry_ctx} operator"),
                value=_require_scalar(data.get("value"), f"{entry_ctx} value"),
            )
        )
    return conditions


def _parse_effects(raw: object, context: str) -> List[EffectDef]:
    effects: List[EffectDef] = []
    for index, entry in enumerate(_optional_list(raw, context)):
        entry_ctx = f"{context}[{index}]"
        data = _require_mapping(entry, entry_ctx)
        effects.append(
            EffectDef(
                variable_id=_require_str(data.get("variableId"), f"{entry_ctx} variableId"),
                operation=_require_str(data.get("operation"), f"{entry_ctx} operation"),
                value=_require_scalar(data.get("value"), f"{entry_ctx} value"),
            )
        )
    return effects


def _parse_node(raw: object, context: str) -> SceneNodeDef:
    data = _require_mapping(raw, context)
    node_id = _require_str(data.get("id"), f"{context} id")
    node_ctx = f"scene '{node_id}'"
    options: List[ChoiceOptionDef] = []
    for index, entry in enumerate(_optional_list(data.get("options"), f"{node_ctx} options")):
        option_ctx = f"{node_ctx} options[{index}]"
        option = _require_mapping(entry, option_ctx)
        options.append(
            ChoiceOptionDef(
                id=_require_str(option.get("id"), f"{option_ctx} id"),
                text=_optional_str(option.get("text"), f"{option_ctx} text") or "",
                target_id=_optional_str(option.get("targetId"), f"{option_ctx} targetId"),
                conditions=_parse_conditions(option.get("conditions"), f"{option_ctx} conditions"),
                effects=_parse_effects(option.get("effects"), f"{option_ctx} effects"),
            )
        )
    tags = _optional_list(data.get("tags"), f"{node_ctx} tags")
    return SceneNodeDef(
        id=node_id,
        label=_optional_str(data.get("label"), f"{node_ctx} label") or node_id,
        content=_optional_str(data.get("content"), f"{node_ctx} content"),
        location=_optional_str(data.get("location"), f"{node_ctx} location"),
        preconditions=_parse_conditions(data.get("preconditions"), f"{node_ctx} preconditions"),
        effects=_parse_effects(data.get("effects"), f"{node_ctx} effects"),
        options=options,
        tags=[_require_str(tag, f"{node_ctx} tags[{index}]") for index, tag in enumerate(tags)],
        is_pool_member=bool(data.get("isPoolMember", False)),
        has_choice=bool(data.get("hasChoice", False)),
        is_branch=bool(data.get("isBranch", False)),
        branch_choice_index=_optional_int(data.get("branchChoiceIndex"), f"{node_ctx} branchChoiceIndex"),
    )


def _parse_edge(raw: object, context: str) -> EdgeDef:
    data = _require_mapping(raw, context)
    edge_id = _require_str(data.get("id"), f"{context} id")
    edge_ctx = f"edge '{edge_id}'"
    raw_kind = data.get("kind", data.get("type", EdgeKind.FLOW.value))
    try:
        kind = EdgeKind(raw_kind)
    except ValueError as exc:
        raise DataValidationError(f"{edge_ctx} type '{raw_kind}' is not a known edge type.") from exc
    conditions = None
    if data.get("conditions") is not None:
        conditions = _parse_conditions(data["conditions"], f"{edge_ctx} conditions")
    effects = None
    if data.get("effects") is not None:
        effects = _parse_effects(data["effects"], f"{edge_ctx} effects")
    return EdgeDef(
        id=edge_id,
        source=_require_str(data.get("source"), f"{edge_ctx} source"),
        target=_require_str(data.get("target"), f"{edge_ctx} target"),
        kind=kind,
        label=_optional_str(data.get("label"), f"{edge_ctx} label"),
        weight=_optional_number(data.get("weight"), f"{edge_ctx} weight"),
        conditions=conditions,
        effects=effects,
    )


def _parse_pool(raw: object, context: str) -> PoolDef:
    data = _require_mapping(raw, context)
    pool_id = _require_str(data.get("id"), f"{context} id")
    pool_ctx = f"pool '{pool_id}'"
    weight_policy = data.get("weightPolicy", "uniform")
    if weight_policy not in _WEIGHT_POLICIES:
        raise DataValidationError(f"{pool_ctx} weightPolicy must be 'uniform' or 'weighted'.")
    members = _optional_list(data.get("memberIds"), f"{pool_ctx} memberIds")
    return PoolDef(
        id=pool_id,
        name=_optional_str(data.get("name"), f"{pool_ctx} name") or pool_id,
        member_ids=[_require_str(member, f"{pool_ctx} memberIds[{i}]") for i, member in enumerate(members)],
        cooldown=_optional_int(data.get("cooldown"), f"{pool_ctx} cooldown") or 0,
        weight_policy=weight_policy,
    )


def graph_to_dict(graph: StoryGraphDef) -> Dict[str, object]:
    """Return the graph in the editor's JSON layout."""
    return {
        "nodes": [_node_to_dict(node) for node in graph.nodes],
        "edges": [_edge_to_dict(edge) for edge in graph.edges],
        "variables": [
            _drop_none(
                {
                    "id": var.id,
                    "name": var.name,
                    "type": var.kind,
                    "defaultValue": var.default_value,
                    "currentValue": var.current_value,
                    "min": var.min,
                    "max": var.max,
                }
            )
            for var in graph.variables
        ],
        "pools": [
            {
                "id": pool.id,
                "name": pool.name,
                "memberIds": list(pool.member_ids),
                "cooldown": pool.cooldown,
                "weightPolicy": pool.weight_policy,
            }
            for pool in graph.pools
        ],
    }


def _conditions_to_list(conditions: List[ConditionDef]) -> List[Dict[str, object]]:
    return [
        {"variableId": cond.variable_id, "operator": cond.operator, "value": cond.value}
        for cond in conditions
    ]


def _effects_to_list(effects: List[EffectDef]) -> List[Dict[str, object]]:
    return [
        {"variableId": eff.variable_id, "operation": eff.operation, "value": eff.value}
        for eff in effects
    ]


def _node_to_dict(node: SceneNodeDef) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "id": node.id,
        "label": node.label,
        "content": node.content,
        "location": node.location,
        "preconditions": _conditions_to_list(node.preconditions),
        "effects": _effects_to_list(node.effects),
        "tags": list(node.tags),
        "isPoolMember": node.is_pool_member,
        "hasChoice": node.has_choice,
        "isBranch": node.is_branch,
        "branchChoiceIndex": node.branch_choice_index,
    }
    if node.options:
        payload["options"] = [
            _drop_none(
                {
                    "id": option.id,
                    "text": option.text,
                    "targetId": option.target_id,
                    "conditions": _conditions_to_list(option.conditions),
                    "effects": _effects_to_list(option.effects),
                }
            )
            for option in node.options
        ]
    return _drop_none(payload)


def _edge_to_dict(edge: EdgeDef) -> Dict[str, object]:
    return _drop_none(
        {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "type": edge.kind.value,
            "label": edge.label,
            "weight": edge.weight,
            "conditions": None if edge.conditions is None else _conditions_to_list(edge.conditions),
            "effects": None if edge.effects is None else _effects_to_list(edge.effects),
        }
    )


def _drop_none(payload: Dict[str, object]) -> Dict[str, object]:
    return {key: value for key, value in payload.items() if value is not None}


def _require_mapping(value: object, context: str) -> dict:
    if not isinstance(value, dict):
        raise DataValidationError(f"{context} must be an object/dict.")
    return value


def _optional_list(value: object, context: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DataValidationError(f"{context} must be a list if provided.")
    return value


def _require_str(value: object, context: str) -> str:
    if not isinstance(value, str):
        raise DataValidationError(f"{context} must be a string.")
    return value


def _optional_str(value: object, context: str) -> str | None:
    if value is None:
        return None
    return _require_str(value, context)


def _require_scalar(value: object, context: str):
    if not isinstance(value, _SCALAR_TYPES):
        raise DataValidationError(f"{context} must be a boolean, number, string or null.")
    return value


def _optional_number(value: object, context: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataValidationError(f"{context} must be a number.")
    return value


def _optional_int(value: object, context: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise DataValidationError(f"{context} must be an integer.")
    return value
