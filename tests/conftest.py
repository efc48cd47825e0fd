"""Shared fixtures for building small topologies directly in the store."""

from __future__ import annotations

from typing import Callable, Optional

import pytest

from redoroute.model.topology import Node, Route, Topology
from redoroute.model.types import NodeKind, Role, TransportMode


@pytest.fixture
def build_topology() -> Callable[..., Topology]:
    """Return a builder taking node entries and route entries.

    Node entry: ``(id, unique_name, kind, role)``; kind and role may be omitted
    (defaults: DATABASE, STANDBY for databases).

    Route entry: dict with ``source``, ``target``, ``scenario`` and optional
    ``mode``, ``priority``, ``alternate``, ``id``. ``targetName`` is taken
    from the target node.
    """

    def build(nodes, routes=()) -> Topology:
        topology = Topology()
        for entry in nodes:
            node_id, name, *rest = entry
            kind = rest[0] if rest else NodeKind.DATABASE
            role: Optional[Role] = rest[1] if len(rest) > 1 else None
            if kind is NodeKind.DATABASE and role is None:
                role = Role.STANDBY
            topology.add_node(Node(id=node_id, kind=kind, unique_name=name, role=role))
        for index, entry in enumerate(routes):
            target = topology.nodes[entry["target"]]
            mode = TransportMode.from_string(entry.get("mode", "ASYNC"))
            topology.add_route(
                Route(
                    id=entry.get("id", f"r{index}"),
                    source=entry["source"],
                    target=entry["target"],
                    scenario_primary=entry["scenario"],
                    target_name=target.unique_name,
                    transport_mode=mode,
                    priority=entry.get("priority", 1),
                    alternate_target_name=entry.get("alternate"),
                )
            )
        return topology

    return build
