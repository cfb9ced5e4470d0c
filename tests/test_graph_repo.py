import json
from pathlib import Path

import pytest

from storyloom.data import paths
from storyloom.data.errors import DataLoadError, DataValidationError
from storyloom.data.graph_repo import GraphRepository, graph_to_dict, load_graph, parse_graph
from storyloom.domain.defs import EdgeKind


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _minimal_graph() -> dict:
    return {
        "nodes": [
            {"id": "a", "label": "Alpha", "preconditions": [], "effects": []},
            {
                "id": "b",
                "preconditions": [{"variableId": "v", "operator": ">=", "value": 2}],
                "effects": [{"variableId": "v", "operation": "toggle"}],
            },
        ],
        "edges": [
            {"id": "ab", "source": "a", "target": "b", "type": "TRIGGER", "weight": 40},
            {
                "id": "ba",
                "source": "b",
                "target": "a",
                "kind": "CONSTRAINT",
                "conditions": [{"variableId": "v", "operator": "==", "value": "x"}],
            },
        ],
        "variables": [{"id": "v", "name": "V", "type": "number", "defaultValue": 1}],
    }


def test_get_graphs_path_base_path(tmp_path: Path) -> None:
    assert paths.get_graphs_path(tmp_path) == tmp_path


def test_sample_graph_path_exists() -> None:
    sample = paths.get_sample_graph_path()
    assert sample.name == paths.SAMPLE_GRAPH_FILENAME
    assert sample.exists()


def test_sample_graph_ships_inside_package() -> None:
    package_dir = Path(paths.__file__).resolve().parent

    assert paths.get_sample_graph_path() == package_dir / "graphs" / paths.SAMPLE_GRAPH_FILENAME


def test_repository_defaults_to_sample_and_caches() -> None:
    repo = GraphRepository()

    graph = repo.get()

    assert repo.path == paths.get_sample_graph_path()
    assert repo.get() is graph
    assert graph.find_node("arrival") is not None


def test_parse_graph_reads_editor_layout() -> None:
    graph = parse_graph(_minimal_graph())

    first, second = graph.nodes
    assert first.label == "Alpha"
    assert second.label == "b"
    assert second.preconditions[0].operator == ">="
    assert second.effects[0].value is None
    assert graph.edges[0].kind is EdgeKind.TRIGGER
    assert graph.edges[0].weight == 40
    assert graph.edges[0].conditions is None
    assert graph.edges[1].kind is EdgeKind.CONSTRAINT
    assert graph.edges[1].conditions[0].value == "x"
    variable = graph.variables[0]
    assert variable.kind == "number"
    assert variable.current_value == 1
    assert graph.pools == []


def test_parse_graph_keeps_dangling_edges() -> None:
    raw = _minimal_graph()
    raw["edges"].append({"id": "lost", "source": "a", "target": "nowhere"})

    graph = parse_graph(raw)

    assert graph.find_edge("lost").kind is EdgeKind.FLOW
    assert graph.find_node("nowhere") is None


@pytest.mark.parametrize(
    "mutate",
    [
        lambda raw: raw.update(nodes={"a": {}}),
        lambda raw: raw["nodes"][0].pop("id"),
        lambda raw: raw["edges"][0].update(type="PORTAL"),
        lambda raw: raw["edges"][0].update(weight="heavy"),
        lambda raw: raw["variables"][0].update(type="list"),
        lambda raw: raw["variables"][0].update(defaultValue=[1, 2]),
        lambda raw: raw["nodes"][1]["preconditions"][0].pop("operator"),
        lambda raw: raw.update(pools=[{"id": "p", "weightPolicy": "biased"}]),
    ],
)
def test_parse_graph_rejects_bad_structure(mutate) -> None:
    raw = _minimal_graph()
    mutate(raw)

    with pytest.raises(DataValidationError):
        parse_graph(raw)


def test_parse_graph_requires_object() -> None:
    with pytest.raises(DataValidationError):
        parse_graph([])


def test_load_graph_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DataLoadError):
        load_graph(tmp_path / "missing.json")


def test_load_graph_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{nodes: [", encoding="utf-8")

    with pytest.raises(DataLoadError):
        load_graph(path)


def test_graph_to_dict_reloads_to_same_graph(tmp_path: Path) -> None:
    original = load_graph(paths.get_sample_graph_path())
    path = _write_json(tmp_path / "copy.json", graph_to_dict(original))

    reloaded = load_graph(path)

    assert reloaded == original


def test_graph_to_dict_uses_camel_case() -> None:
    payload = graph_to_dict(parse_graph(_minimal_graph()))

    assert payload["edges"][0] == {
        "id": "ab",
        "source": "a",
        "target": "b",
        "type": "TRIGGER",
        "weight": 40,
    }
    assert payload["variables"][0]["defaultValue"] == 1
    assert "branchChoiceIndex" not in payload["nodes"][0]
