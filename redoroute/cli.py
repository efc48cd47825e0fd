"""Command-line interface for redoroute."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml

from redoroute.editor import TopologyEditor
from redoroute.logging import (
    disable_debug_logging,
    enable_debug_logging,
    get_logger,
    set_global_log_level,
)
from redoroute.model.snapshot import SnapshotError

logger = get_logger(__name__)


def _format_table(
    headers: List[str],
    rows: List[List[Any]],
    min_width: int = 8,
    max_col_width: Optional[int] = None,
) -> str:
    """Format data as a simple ASCII table.

    Args:
        headers: Column headers
        rows: Data rows
        min_width: Minimum column width
        max_col_width: Clip cells longer than this (with "...")

    Returns:
        Formatted table string ("" when there are no rows)
    """
    if not rows:
        return ""

    def clip(val: Any) -> str:
        s = "" if val is None else str(val)
        if max_col_width is not None and len(s) > max_col_width:
            return s[: max_col_width - 3] + "..."
        return s

    clipped = [[clip(h) for h in headers]] + [[clip(v) for v in row] for row in rows]
    widths = [
        max(max(len(row[i]) for row in clipped), min_width)
        for i in range(len(headers))
    ]

    def format_row(row_data: List[str]) -> str:
        return "   " + " | ".join(
            f"{item:<{widths[i]}}" for i, item in enumerate(row_data)
        )

    lines = [format_row(clipped[0])]
    lines.append("   " + "-+-".join("-" * w for w in widths))
    lines.extend(format_row(row) for row in clipped[1:])
    return "\n".join(lines)


def _load_editor(path: Path) -> TopologyEditor:
    """Read a JSON or YAML snapshot file into a fresh editor.

    Raises:
        SystemExit: With status 1 when the file cannot be read or parsed.
    """
    logger.debug("Loading snapshot from: %s", path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        editor = TopologyEditor()
        editor.import_snapshot(data)
    except FileNotFoundError:
        logger.error("Snapshot file not found: %s", path)
        raise SystemExit(1) from None
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Failed to read snapshot %s: %s", path, exc)
        raise SystemExit(1) from None
    except SnapshotError as exc:
        logger.error("Invalid snapshot %s: %s", path, exc)
        raise SystemExit(1) from None
    return editor


def _compile(path: Path, output: Optional[Path]) -> None:
    editor = _load_editor(path)
    statements = editor.compile_statements()
    if output is None:
        if statements:
            print(statements)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(statements + "\n" if statements else "", encoding="utf-8")
    logger.info("Statements written to: %s", output)


def _validate(path: Path, scenario: Optional[str]) -> None:
    editor = _load_editor(path)
    if scenario is None:
        primary = editor.current_primary()
        scenario = primary.unique_name if primary is not None else None
    if scenario is None:
        logger.warning("No primary in snapshot and no --scenario given")
        projected = []
    else:
        projected = editor.project_scenario(scenario)

    warnings = editor.validate(projected)
    rows = [
        [n.unique_name, n.kind.value, n.role.value if n.role else "-", warnings[n.id]]
        for n in editor.topology.nodes.values()
    ]
    print(f"Scenario: {scenario or '-'}")
    print(_format_table(["Name", "Kind", "Role", "Warning"], rows))
    flagged = sum(1 for w in warnings.values() if w)
    logger.info("%d of %d node(s) with warnings", flagged, len(warnings))


def _inspect(path: Path) -> None:
    editor = _load_editor(path)
    topology = editor.topology
    print(f"Nodes: {len(topology.nodes)}")
    node_rows = [
        [n.id, n.unique_name, n.kind.value, n.role.value if n.role else "-"]
        for n in topology.nodes.values()
    ]
    print(_format_table(["Id", "Name", "Kind", "Role"], node_rows))
    print(f"\nRoutes: {len(topology.routes)}")
    route_rows = []
    for route in topology.routes.values():
        source = topology.nodes[route.source]
        route_rows.append(
            [
                route.scenario_primary,
                source.unique_name,
                route.target_name,
                route.transport_mode.value,
                route.priority,
                route.alternate_target_name or "-",
            ]
        )
    print(
        _format_table(
            ["When primary", "Source", "Target", "Mode", "Priority", "Alternate to"],
            route_rows,
            max_col_width=40,
        )
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``redoroute`` command.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = argparse.ArgumentParser(
        prog="redoroute",
        description="Validate redo-transport topologies and compile RedoRoutes.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="Available commands",
        metavar="{compile,validate,inspect}",
        help="Available commands",
    )

    compile_parser = subparsers.add_parser(
        "compile", help="Compile RedoRoutes statements"
    )
    compile_parser.add_argument("snapshot", type=Path, help="Path to snapshot file")
    compile_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write statements to this file instead of stdout",
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Show structural warnings per node"
    )
    validate_parser.add_argument("snapshot", type=Path, help="Path to snapshot file")
    validate_parser.add_argument(
        "--scenario",
        "-s",
        default=None,
        help="Unique name of the node assumed primary (default: current primary)",
    )

    inspect_parser = subparsers.add_parser("inspect", help="List nodes and routes")
    inspect_parser.add_argument("snapshot", type=Path, help="Path to snapshot file")

    effective_args = sys.argv[1:] if argv is None else argv
    if not effective_args:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(effective_args)

    if args.verbose:
        enable_debug_logging()
        logger.debug("Debug logging enabled")
    elif args.quiet:
        set_global_log_level(logging.WARNING)
    else:
        disable_debug_logging()

    if args.command == "compile":
        _compile(args.snapshot, args.output)
    elif args.command == "validate":
        _validate(args.snapshot, args.scenario)
    elif args.command == "inspect":
        _inspect(args.snapshot)


if __name__ == "__main__":
    main()
