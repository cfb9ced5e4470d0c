"""Console front end: graph checks and the interactive simulator."""
from __future__ import annotations

import argparse
import json
import logging
import secrets
from pathlib import Path
from typing import Dict, List, Literal, Sequence

from storyloom.data import DataError, get_sample_graph_path
from storyloom.data.graph_repo import load_graph
from storyloom.domain.defs import StoryGraphDef
from storyloom.domain.scene_category import classify_all
from storyloom.domain.simulation_state import SimulationState
from storyloom.presentation.cli.config import get_default_config_path, load_config, save_config
from storyloom.presentation.cli.render import (
    debug_enabled,
    format_value,
    render_conflicts,
    render_dependencies,
    render_scene,
    render_trace,
)
from storyloom.services import (
    NodeEnteredEvent,
    PoolRolledEvent,
    SimulationService,
    VariableChangedEvent,
    detect_conflicts,
    extract_dependencies,
)
from storyloom.services.graph_analyzer import conflict_to_dict, summarize_conflicts
from storyloom.services.simulation_service import SimulationEvent

SimAction = Literal["choose", "roll", "reset", "trace", "quit"]
_MAX_RANDOM_SEED = 2**31 - 1
EXIT_OK = 0
EXIT_CONFLICTS = 1
EXIT_DATA_ERROR = 2


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run the selected command."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if debug_enabled() else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config_path = Path(args.config) if args.config else None
    if args.command == "config":
        return _run_config(args, config_path)
    config = load_config(config_path)
    try:
        graph = load_graph(args.graph or get_sample_graph_path())
    except DataError as exc:
        print(f"error: {exc}")
        return EXIT_DATA_ERROR
    if args.command == "check":
        return _run_check(graph, args, config)
    if args.command == "classify":
        for node_id, category in classify_all(graph).items():
            print(f"{node_id}: {category.value}")
        return EXIT_OK
    if args.command == "deps":
        render_dependencies(extract_dependencies(graph))
        return EXIT_OK
    service = SimulationService(graph, honor_edge_rules=bool(config["honor_edge_rules"]))
    seed = args.seed if args.seed is not None else secrets.randbelow(_MAX_RANDOM_SEED)
    _run_simulation(service, service.new_session(seed))
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storyloom", description="Check and simulate story graphs.")
    parser.add_argument("--config", help="Path to the config file (default: per-user config).")
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="Report structural and logical conflicts.")
    _add_graph_argument(check)
    check.add_argument("--json", action="store_true", help="Print conflicts as JSON.")
    check.add_argument(
        "--ending-tag",
        action="append",
        default=[],
        help="Scenes with this tag are endings, not dead ends (repeatable).",
    )
    check.add_argument(
        "--exhaustive", action="store_true", help="Check contradictions over all operators."
    )

    classify = commands.add_parser("classify", help="Print the category of every scene.")
    _add_graph_argument(classify)

    deps = commands.add_parser("deps", help="Print variables read and written per scene.")
    _add_graph_argument(deps)

    simulate = commands.add_parser("simulate", help="Walk the graph interactively.")
    _add_graph_argument(simulate)
    simulate.add_argument("--seed", type=int, help="Seed for pool rolls (blank for random).")

    config = commands.add_parser("config", help="Show or update saved options.")
    config.add_argument("--ending-tag", action="append", help="Replace the saved ending tags.")
    config.add_argument("--exhaustive", action=argparse.BooleanOptionalAction, default=None)
    config.add_argument("--honor-edge-rules", action=argparse.BooleanOptionalAction, default=None)
    return parser


def _add_graph_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("graph", nargs="?", help="Graph JSON file (default: bundled sample).")


def _run_check(graph: StoryGraphDef, args: argparse.Namespace, config: Dict[str, object]) -> int:
    ending_tags = list(config["ending_tags"]) + list(args.ending_tag)
    conflicts = detect_conflicts(
        graph,
        ending_tags=ending_tags or None,
        exhaustive=args.exhaustive or bool(config["exhaustive_contradictions"]),
    )
    counts = summarize_conflicts(conflicts)
    if args.json:
        print(json.dumps([conflict_to_dict(conflict) for conflict in conflicts], indent=2, ensure_ascii=False))
    else:
        render_conflicts(conflicts)
        print(
            f"Summary: nodes={len(graph.nodes)} edges={len(graph.edges)} "
            f"errors={counts['error']} warnings={counts['warning']}"
        )
    return EXIT_CONFLICTS if counts["error"] else EXIT_OK


def _run_config(args: argparse.Namespace, config_path: Path | None) -> int:
    config = load_config(config_path)
    changed = False
    if args.ending_tag is not None:
        config["ending_tags"] = args.ending_tag
        changed = True
    if args.exhaustive is not None:
        config["exhaustive_contradictions"] = args.exhaustive
        changed = True
    if args.honor_edge_rules is not None:
        config["honor_edge_rules"] = args.honor_edge_rules
        changed = True
    if changed:
        written = save_config(config, config_path)
        print(f"Saved {written}")
        config = load_config(written)
    else:
        print(f"Config: {config_path or get_default_config_path()}")
    for key in sorted(config):
        print(f"{key} = {config[key]}")
    return EXIT_OK


def _run_simulation(service: SimulationService, state: SimulationState) -> None:
    """Run the interactive simulation loop until the player quits."""
    print(f"Simulation started with seed: {state.seed}")
    while True:
        view = service.get_current_view(state)
        if view is None:
            print("No start scene: add a scene with outgoing edges and no incoming edges.")
            return
        render_scene(view)
        action, index = _prompt_action(len(view.transitions))
        if action == "quit":
            return
        if action == "reset":
            service.reset(state)
            continue
        if action == "trace":
            render_trace(state.trace)
            continue
        if action == "roll":
            result = service.pool_roll(state)
            if not result.advanced:
                print("Nothing to roll from this scene.")
        else:
            result = service.choose(state, index)
        _render_events(result.events)


def _prompt_action(transition_count: int) -> tuple[SimAction, int]:
    while True:
        raw = input("Select a transition, (r)oll, (s)reset, (t)race or (q)uit: ").strip().lower()
        if raw in ("q", "quit"):
            return "quit", -1
        if raw in ("s", "reset"):
            return "reset", -1
        if raw in ("t", "trace"):
            return "trace", -1
        if raw in ("r", "roll"):
            return "roll", -1
        try:
            index = int(raw) - 1
        except ValueError:
            print("Please enter a number or a command letter.")
            continue
        if 0 <= index < transition_count:
            return "choose", index
        if transition_count:
            print(f"Please enter a value between 1 and {transition_count}.")
        else:
            print("No transitions available; roll, reset or quit.")


def _render_events(events: List[SimulationEvent]) -> None:
    if not events:
        return
    print("\nEvents:")
    for event in events:
        if isinstance(event, PoolRolledEvent):
            print(f"- Rolled {event.draw:.2f} of {event.total_weight:g} from '{event.source_id}'.")
        elif isinstance(event, NodeEnteredEvent):
            print(f"- Beat: {event.label}")
        elif isinstance(event, VariableChangedEvent):
            print(
                f"- {event.variable_id}: {format_value(event.previous)} -> {format_value(event.current)}"
            )
        else:
            print(f"- {event}")
