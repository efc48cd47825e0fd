"""Topology store: nodes, routes and the container holding them.

The store only keeps data and identity. Business rules (connection legality,
the single-primary invariant, the node cap) are enforced by
:class:`redoroute.editor.TopologyEditor`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from redoroute.model.types import NodeKind, Role, TransportMode


@dataclass
class Node:
    """Participant in the redo-transport network.

    Attributes:
        id (str): Opaque identifier, stable for the node's lifetime.
        kind (NodeKind): DATABASE, RELAY or APPLIANCE.
        unique_name (str): Display and configuration name.
        role (Optional[Role]): PRIMARY or STANDBY for databases, None otherwise.
        layout (Any): Opaque layout metadata owned by the presentation layer.
    """

    id: str
    kind: NodeKind
    unique_name: str
    role: Optional[Role] = None
    layout: Any = None

    @property
    def is_primary(self) -> bool:
        return self.kind is NodeKind.DATABASE and self.role is Role.PRIMARY

    @property
    def is_standby(self) -> bool:
        return self.kind is NodeKind.DATABASE and self.role is Role.STANDBY


@dataclass
class Route:
    """Directed, scenario-scoped transport path from ``source`` to ``target``.

    Attributes:
        id (str): Opaque identifier.
        source (str): Source node id.
        target (str): Target node id.
        transport_mode (TransportMode): SYNC, ASYNC or FASTSYNC.
        priority (int): 1 for a chain head, larger values for alternates.
        scenario_primary (str): Unique name of the node that must be primary
            for this route to be active.
        target_name (str): Target's unique name captured when the route was
            created.
        alternate_target_name (Optional[str]): Unique name of the chain head
            this route is an alternate for.
    """

    id: str
    source: str
    target: str
    scenario_primary: str
    target_name: str
    transport_mode: TransportMode = TransportMode.ASYNC
    priority: int = 1
    alternate_target_name: Optional[str] = None


@dataclass
class Topology:
    """Container for nodes and routes keyed by id.

    Route insertion order is preserved; the route compiler relies on it for
    deterministic statement ordering.

    Attributes:
        nodes (Dict[str, Node]): Mapping from node id -> Node.
        routes (Dict[str, Route]): Mapping from route id -> Route.
    """

    nodes: Dict[str, Node] = field(default_factory=dict)
    routes: Dict[str, Route] = field(default_factory=dict)

    def add_node(self, node: Node) -> None:
        """Store a node (keyed by node.id).

        Raises:
            ValueError: If a node with the same id already exists.
        """
        if node.id in self.nodes:
            raise ValueError(f"Node '{node.id}' already exists in the topology.")
        self.nodes[node.id] = node

    def add_route(self, route: Route) -> None:
        """Store a route (keyed by route.id).

        Raises:
            ValueError: If the id is taken or an endpoint is unknown.
        """
        if route.id in self.routes:
            raise ValueError(f"Route '{route.id}' already exists in the topology.")
        if route.source not in self.nodes:
            raise ValueError(f"Source node '{route.source}' not found in topology.")
        if route.target not in self.nodes:
            raise ValueError(f"Target node '{route.target}' not found in topology.")
        self.routes[route.id] = route

    def remove_node(self, node_id: str) -> List[Route]:
        """Remove a node and every route touching it.

        Returns:
            The removed routes, in store order.
        """
        self.nodes.pop(node_id, None)
        removed = [
            r
            for r in self.routes.values()
            if r.source == node_id or r.target == node_id
        ]
        for route in removed:
            del self.routes[route.id]
        return removed

    def remove_route(self, route_id: str) -> Optional[Route]:
        return self.routes.pop(route_id, None)

    def primary(self) -> Optional[Node]:
        """Return the node currently holding PRIMARY, if any."""
        for node in self.nodes.values():
            if node.is_primary:
                return node
        return None

    def databases(self) -> Iterator[Node]:
        return (n for n in self.nodes.values() if n.kind is NodeKind.DATABASE)

    def routes_from(self, node_id: str) -> List[Route]:
        return [r for r in self.routes.values() if r.source == node_id]
