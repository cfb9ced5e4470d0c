"""Data layer utilities for loading story graph JSON."""

from .errors import DataError, DataLoadError, DataValidationError
from .paths import get_graphs_path, get_sample_graph_path

__all__ = [
    "DataError",
    "DataLoadError",
    "DataValidationError",
    "get_graphs_path",
    "get_sample_graph_path",
]
