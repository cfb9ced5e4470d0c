"""Helpers for resolving bundled graph locations."""
from __future__ import annotations

from pathlib import Path

SAMPLE_GRAPH_FILENAME = "sample_story.json"


def get_graphs_path(base_path: Path | str | None = None) -> Path:
    """Return the directory containing bundled graph files.

    Graphs ship inside the package so installed copies find them too.
    """
    if base_path is not None:
        return Path(base_path)
    return Path(__file__).resolve().parent / "graphs"


def get_sample_graph_path() -> Path:
    return get_graphs_path() / SAMPLE_GRAPH_FILENAME
