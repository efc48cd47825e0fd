"""NetworkX conversion for topologies.

Example:
    >>> from redoroute.lib.nx import to_networkx
    >>> graph = to_networkx(editor.topology, scenario="ORCL_SITE1")
    >>> list(graph.successors(primary.id))
"""

from __future__ import annotations

from typing import Optional

import networkx as nx

from redoroute.model.topology import Topology


def to_networkx(topology: Topology, scenario: Optional[str] = None) -> nx.MultiDiGraph:
    """Convert a topology to a ``networkx.MultiDiGraph``.

    Nodes are keyed by node id; routes become edges keyed by route id. Node
    and edge attributes use the snapshot field names.

    Args:
        topology: Topology to convert.
        scenario: When given, only routes of this scenario become edges.
            All nodes are always included.

    Returns:
        A new MultiDiGraph; later edits to the topology do not affect it.
    """
    graph = nx.MultiDiGraph()
    for node in topology.nodes.values():
        graph.add_node(
            node.id,
            kind=node.kind.value,
            uniqueName=node.unique_name,
            role=node.role.value if node.role is not None else None,
        )
    for route in topology.routes.values():
        if scenario is not None and route.scenario_primary != scenario:
            continue
        graph.add_edge(
            route.source,
            route.target,
            key=route.id,
            transportMode=route.transport_mode.value,
            priority=route.priority,
            scenarioPrimary=route.scenario_primary,
            alternateTargetName=route.alternate_target_name,
            targetName=route.target_name,
        )
    return graph
