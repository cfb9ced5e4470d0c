"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
import textwrap
from typing import Iterable, Sequence

from storyloom.services.graph_analyzer import Conflict, StateDependency, format_conflict
from storyloom.services.simulation_service import SimulationView


def debug_enabled() -> bool:
    """Return True only when STORYLOOM_DEBUG is explicitly set to '1'."""
    return os.getenv("STORYLOOM_DEBUG") == "1"


def format_value(value: object) -> str:
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if value is None:
        return "-"
    return str(value)


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_conflicts(conflicts: Sequence[Conflict]) -> None:
    if not conflicts:
        print("No conflicts detected.")
        return
    for conflict in conflicts:
        print(format_conflict(conflict))
        if conflict.suggestion:
            print(f"    hint: {conflict.suggestion}")


def render_dependencies(dependencies: Iterable[StateDependency]) -> None:
    for dependency in dependencies:
        reads = ", ".join(dependency.depends_on) or "-"
        writes = ", ".join(dependency.modifies) or "-"
        print(f"{dependency.node_id}: reads [{reads}] writes [{writes}]")


def render_scene(view: SimulationView, *, width: int = 72) -> None:
    """Render the current scene, its transitions and the variable monitor."""
    title = f"{view.label} [{view.category.value}]"
    if debug_enabled():
        title += f" ({view.node_id})"
    render_heading(title)
    print(f"@ {view.location or 'Limbo'}")
    for line in textwrap.wrap(view.content or "...", width=width):
        print(line)
    if view.variables:
        render_heading("State")
        for name, value in view.variables:
            print(f"- {name}: {format_value(value)}")
    if view.transitions:
        render_heading("Transitions")
        for idx, label in enumerate(view.transitions, start=1):
            print(f"{idx}. {label}")
    else:
        print("\nTimeline has reached a final scene or dead end.")


def render_trace(trace: Sequence[str]) -> None:
    render_heading("Trace")
    for line in trace:
        print(f"- {line}")
