"""Structural warnings for a topology under the displayed scenario.

Warnings are advisory: they never block an edit. For each node the engine
collects, in order:

1. fan-in: standby databases, relays and appliances must receive exactly one
   effective route in the scenario;
2. loops: membership in any directed cycle of the full route set;
3. the non-ASYNC destination limit of the current primary;
4. the total destination limit of the current primary.

The primary limits count routes of every scenario.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

import networkx as nx

from redoroute.analysis.projection import ProjectedRoute
from redoroute.config import DEFAULT_LIMITS, TopologyLimits
from redoroute.logging import get_logger
from redoroute.model.topology import Node, Route, Topology
from redoroute.model.types import NodeKind, TransportMode

LOGGER = get_logger(__name__)

NO_REDO = "does not receive redo"
MULTIPLE_SOURCES = "cannot receive from multiple sources"
LOOP_DETECTED = "loop detected"
WARNING_SEPARATOR = "; "


def _receives_redo(node: Node) -> bool:
    return node.kind in (NodeKind.RELAY, NodeKind.APPLIANCE) or node.is_standby


def find_cycle_members(routes: Iterable[Route]) -> Set[str]:
    """Return ids of nodes lying on a directed cycle of ``routes``.

    A node is a member when its strongly connected component has more than
    one node. Self-routes are not stored, so single-node components never
    qualify.
    """
    graph = nx.DiGraph()
    graph.add_edges_from((r.source, r.target) for r in routes)
    members: Set[str] = set()
    for component in nx.strongly_connected_components(graph):
        if len(component) > 1:
            members.update(component)
    return members


def node_warnings(
    topology: Topology,
    scenario_routes: Iterable[ProjectedRoute],
    limits: Optional[TopologyLimits] = None,
) -> Dict[str, List[str]]:
    """Collect warning messages per node.

    Args:
        topology: Full topology; cycles and primary limits use all its routes.
        scenario_routes: Output of ``project_scenario`` for the displayed
            scenario; only effective routes count toward fan-in.
        limits: Capacity limits (defaults to ``DEFAULT_LIMITS``).

    Returns:
        Mapping from every node id to its (possibly empty) warning list.
    """
    limits = limits or DEFAULT_LIMITS

    fan_in: Dict[str, int] = {}
    for projected in scenario_routes:
        if projected.is_effective:
            fan_in[projected.target] = fan_in.get(projected.target, 0) + 1

    cycle_members = find_cycle_members(topology.routes.values())
    primary = topology.primary()

    warnings: Dict[str, List[str]] = {node_id: [] for node_id in topology.nodes}
    for node_id, node in topology.nodes.items():
        found = warnings[node_id]
        if _receives_redo(node):
            incoming = fan_in.get(node_id, 0)
            if incoming == 0:
                found.append(NO_REDO)
            elif incoming > 1:
                found.append(MULTIPLE_SOURCES)
        if node_id in cycle_members:
            found.append(LOOP_DETECTED)

    if primary is not None:
        outgoing = topology.routes_from(primary.id)
        non_async = sum(
            1 for r in outgoing if r.transport_mode is not TransportMode.ASYNC
        )
        if non_async > limits.max_non_async_destinations:
            warnings[primary.id].append(
                f"only {limits.max_non_async_destinations} "
                "non-ASYNC destinations are possible"
            )
        if len(outgoing) > limits.max_direct_destinations:
            warnings[primary.id].append(
                f"max {limits.max_direct_destinations} direct destinations"
            )

    if cycle_members:
        LOGGER.debug("Routes form loops through %d node(s)", len(cycle_members))
    return warnings


def validate(
    topology: Topology,
    scenario_routes: Iterable[ProjectedRoute],
    limits: Optional[TopologyLimits] = None,
) -> Dict[str, str]:
    """Return the joined warning string for every node ("" when clean)."""
    return {
        node_id: WARNING_SEPARATOR.join(found)
        for node_id, found in node_warnings(topology, scenario_routes, limits).items()
    }
