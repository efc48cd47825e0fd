"""Snapshot export and import for topologies.

A snapshot is the JSON-safe exchange form of a topology::

    {"nodes": [{"id", "kind", "uniqueName", "role", "layout"}, ...],
     "routes": [{"id", "source", "target", "transportMode", "priority",
                 "scenarioPrimary", "alternateTargetName", "targetName"}, ...]}

Import validates the payload against the packaged JSON schema
(``redoroute/schemas/snapshot.json``) and then checks referential integrity.
It builds a fresh :class:`Topology` and never touches an existing one, so a
failed import leaves the caller's store unchanged.
"""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Optional

import jsonschema

from redoroute.logging import get_logger
from redoroute.model.topology import Node, Route, Topology
from redoroute.model.types import NodeKind, Role, TransportMode

LOGGER = get_logger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be imported."""


@lru_cache(maxsize=1)
def _snapshot_schema() -> Dict[str, Any]:
    with (
        resources.files("redoroute.schemas")
        .joinpath("snapshot.json")
        .open("r", encoding="utf-8")
    ) as f:
        return json.load(f)


def node_to_dict(node: Node) -> Dict[str, Any]:
    return {
        "id": node.id,
        "kind": node.kind.value,
        "uniqueName": node.unique_name,
        "role": node.role.value if node.role is not None else None,
        "layout": copy.deepcopy(node.layout),
    }


def route_to_dict(route: Route) -> Dict[str, Any]:
    return {
        "id": route.id,
        "source": route.source,
        "target": route.target,
        "transportMode": route.transport_mode.value,
        "priority": route.priority,
        "scenarioPrimary": route.scenario_primary,
        "alternateTargetName": route.alternate_target_name,
        "targetName": route.target_name,
    }


def export_snapshot(topology: Topology) -> Dict[str, Any]:
    """Return the snapshot dictionary for ``topology``.

    Nodes and routes are emitted in store order. Layout metadata is deep
    copied so later edits to the snapshot do not leak into the store.
    """
    return {
        "nodes": [node_to_dict(n) for n in topology.nodes.values()],
        "routes": [route_to_dict(r) for r in topology.routes.values()],
    }


def _check_integrity(nodes: List[Node], routes: List[Route]) -> List[str]:
    errors: List[str] = []
    by_id: Dict[str, Node] = {}
    for node in nodes:
        if node.id in by_id:
            errors.append(f"Duplicate node id '{node.id}'")
        by_id[node.id] = node
        if node.kind is NodeKind.DATABASE and node.role is None:
            errors.append(f"Database node '{node.id}' has no role")
        if node.kind is not NodeKind.DATABASE and node.role is not None:
            errors.append(
                f"Node '{node.id}' of kind {node.kind.value} cannot hold a role"
            )

    primaries = [n.id for n in nodes if n.is_primary]
    if len(primaries) > 1:
        errors.append(f"More than one PRIMARY node: {primaries}")

    seen_routes = set()
    for route in routes:
        if route.id in seen_routes:
            errors.append(f"Duplicate route id '{route.id}'")
        seen_routes.add(route.id)
        for end in ("source", "target"):
            node_id = getattr(route, end)
            if node_id not in by_id:
                errors.append(f"Route '{route.id}': unknown {end} node '{node_id}'")
        if route.source == route.target:
            errors.append(f"Route '{route.id}': source and target are the same node")
        source = by_id.get(route.source)
        if source is not None and source.kind is NodeKind.APPLIANCE:
            errors.append(f"Route '{route.id}': appliance '{source.id}' cannot send")
    return errors


def import_snapshot(data: Any, max_nodes: Optional[int] = None) -> Topology:
    """Build a topology from a snapshot dictionary.

    Routes without ``alternateTargetName`` (older captures) import with no
    alternate linkage. Nodes without ``role`` import as role-less.

    Args:
        data: Parsed snapshot (typically from ``json.load``).
        max_nodes: Largest node count accepted. ``None`` disables the cap.

    Returns:
        A new Topology holding the snapshot's nodes and routes in order.

    Raises:
        SnapshotError: If the payload is not a valid snapshot. The message
            lists up to 10 problems.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a mapping with 'nodes' and 'routes'")
    for section in ("nodes", "routes"):
        if not isinstance(data.get(section), list):
            raise SnapshotError(f"Snapshot field '{section}' must be a list")
    if max_nodes is not None and len(data["nodes"]) > max_nodes:
        raise SnapshotError(
            f"Snapshot has {len(data['nodes'])} nodes; at most {max_nodes} are allowed"
        )

    try:
        jsonschema.validate(data, _snapshot_schema())
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise SnapshotError(f"Invalid snapshot at {location}: {exc.message}") from exc

    nodes = [
        Node(
            id=entry["id"],
            kind=NodeKind.from_string(entry["kind"]),
            unique_name=entry["uniqueName"],
            role=Role.from_string(entry["role"]) if entry.get("role") else None,
            layout=copy.deepcopy(entry.get("layout")),
        )
        for entry in data["nodes"]
    ]
    routes = [
        Route(
            id=entry["id"],
            source=entry["source"],
            target=entry["target"],
            transport_mode=TransportMode.from_string(entry["transportMode"]),
            priority=int(entry["priority"]),
            scenario_primary=entry["scenarioPrimary"],
            alternate_target_name=entry.get("alternateTargetName"),
            target_name=entry["targetName"],
        )
        for entry in data["routes"]
    ]

    errors = _check_integrity(nodes, routes)
    if errors:
        error_list = "\n  - ".join(errors[:10])
        suffix = f"\n  ... and {len(errors) - 10} more" if len(errors) > 10 else ""
        raise SnapshotError(
            f"Found {len(errors)} problem(s) in snapshot:\n  - {error_list}{suffix}"
        )

    topology = Topology()
    for node in nodes:
        topology.add_node(node)
    for route in routes:
        topology.add_route(route)
    LOGGER.debug(
        "Imported snapshot: nodes=%d, routes=%d", len(topology.nodes), len(routes)
    )
    return topology
