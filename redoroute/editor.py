"""Topology editing operations and the core API used by front ends.

:class:`TopologyEditor` owns a :class:`Topology` and is the only writer to it.
Every mutation keeps these invariants:

- at most one PRIMARY database; exactly one while any database exists;
- no self-routes, no routes leaving an appliance;
- a new route never targets the current primary;
- the node count stays within ``limits.max_nodes``.

Rejected edits (illegal connections, the node cap, unknown ids, no primary to
scope a route to) are silent no-ops logged at DEBUG. Patches with invalid
values raise ``ValueError`` before anything is applied.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from redoroute.analysis.projection import ProjectedRoute, project_scenario
from redoroute.analysis.validation import validate
from redoroute.compiler import compile_statements
from redoroute.config import DEFAULT_LIMITS, TopologyLimits
from redoroute.logging import get_logger
from redoroute.model.snapshot import export_snapshot, import_snapshot, node_to_dict
from redoroute.model.topology import Node, Route, Topology
from redoroute.model.types import NodeKind, PromotionMode, Role, TransportMode
from redoroute.utils.ids import creation_order_key, new_base64_uuid

LOGGER = get_logger(__name__)

_NODE_PATCH_KEYS = {
    "uniqueName": "unique_name",
    "unique_name": "unique_name",
    "layout": "layout",
}

_ROUTE_PATCH_KEYS = {
    "transportMode": "transport_mode",
    "transport_mode": "transport_mode",
    "priority": "priority",
    "alternateTargetName": "alternate_target_name",
    "alternate_target_name": "alternate_target_name",
}


class TopologyEditor:
    """Mutation operations plus derived views over one topology.

    Attributes:
        topology: The store being edited. Treat it as read-only outside
            this class.
        limits: Node cap, priority range and destination limits.
    """

    def __init__(
        self,
        topology: Optional[Topology] = None,
        limits: Optional[TopologyLimits] = None,
    ) -> None:
        self.topology = topology if topology is not None else Topology()
        self.limits = limits or DEFAULT_LIMITS
        self._next_node_id = self._first_free_id(self.topology)

    @staticmethod
    def _first_free_id(topology: Topology) -> int:
        numeric = [
            int(i) for i in topology.nodes if i.isascii() and i.isdecimal()
        ]
        return max(numeric, default=0) + 1

    def _new_node_id(self) -> str:
        while str(self._next_node_id) in self.topology.nodes:
            self._next_node_id += 1
        node_id = str(self._next_node_id)
        self._next_node_id += 1
        return node_id

    # ---- Queries ----------------------------------------------------------
    def current_primary(self) -> Optional[Node]:
        return self.topology.primary()

    def can_add_node(self) -> bool:
        """Return False once the node cap is reached."""
        return len(self.topology.nodes) < self.limits.max_nodes

    # ---- Nodes ------------------------------------------------------------
    def add_node(self, kind: NodeKind | str, layout: Any = None) -> Optional[Node]:
        """Create a node of ``kind`` with a generated id and default name.

        A database becomes PRIMARY when no primary exists yet, STANDBY
        otherwise. Relays and appliances carry no role.

        Returns:
            The new node, or None when the node cap is reached.
        """
        kind = NodeKind.from_string(kind)
        if not self.can_add_node():
            LOGGER.debug(
                "Node cap of %d reached; not adding %s",
                self.limits.max_nodes,
                kind.value,
            )
            return None

        node_id = self._new_node_id()
        role = None
        if kind is NodeKind.DATABASE:
            role = Role.STANDBY if self.current_primary() else Role.PRIMARY
        node = Node(
            id=node_id,
            kind=kind,
            unique_name=f"{kind.value}_{int(node_id):04d}",
            role=role,
            layout=layout,
        )
        self.topology.add_node(node)
        LOGGER.debug("Added %s node '%s' (%s)", kind.value, node.unique_name, node_id)
        return node

    def add_standby(self, layout: Any = None) -> Optional[Node]:
        """Add a standby database fed by the current primary.

        Returns:
            The new standby, or None without a primary or at the node cap.
        """
        if self.current_primary() is None:
            LOGGER.debug("No primary; not adding a standby")
            return None
        node = self.add_node(NodeKind.DATABASE, layout=layout)
        if node is not None:
            primary = self.current_primary()
            assert primary is not None
            self.connect(primary.id, node.id)
        return node

    def delete_nodes(self, node_ids: Iterable[str]) -> None:
        """Delete nodes and every route touching them.

        When no primary remains afterwards, the earliest-created remaining
        database is promoted.
        """
        deleted = [i for i in dict.fromkeys(node_ids) if i in self.topology.nodes]
        if not deleted:
            return
        for node_id in deleted:
            removed = self.topology.remove_node(node_id)
            LOGGER.debug("Deleted node '%s' and %d route(s)", node_id, len(removed))

        if self.current_primary() is None:
            databases = sorted(
                self.topology.databases(), key=lambda n: creation_order_key(n.id)
            )
            if databases:
                databases[0].role = Role.PRIMARY
                LOGGER.debug("Promoted '%s' to PRIMARY", databases[0].unique_name)

    def update_node(self, node_id: str, patch: Mapping[str, Any]) -> None:
        """Merge ``patch`` into a node.

        Editable keys are ``uniqueName`` and ``layout`` (snake_case accepted).
        Renaming does not rewrite names cached on existing routes.

        Raises:
            ValueError: On a non-editable key (``role`` included; use
                ``make_primary``) or an empty unique name.
        """
        node = self.topology.nodes.get(node_id)
        if node is None:
            LOGGER.debug("update_node: unknown node '%s'", node_id)
            return

        changes: Dict[str, Any] = {}
        for key, value in patch.items():
            attr = _NODE_PATCH_KEYS.get(key)
            if attr is None:
                hint = "; use make_primary() to change roles" if key == "role" else ""
                raise ValueError(f"Node attribute '{key}' is not editable{hint}")
            if attr == "unique_name":
                if not isinstance(value, str) or not value.strip():
                    raise ValueError("uniqueName must be a non-empty string")
            changes[attr] = value

        for attr, value in changes.items():
            setattr(node, attr, value)

    def make_primary(
        self, node_id: str, mode: PromotionMode | str = PromotionMode.SWAP
    ) -> None:
        """Promote a standby database and demote the current primary.

        With ``PromotionMode.SWAP`` routes are untouched: whatever routes
        already exist for the new primary's scenario become active. With
        ``PromotionMode.REVERSE_ROUTES`` the old primary's own routes in its
        scenario are mirrored into the new scenario, sourced at the new
        primary; a route that fed the new primary is turned back toward the
        old one.
        """
        mode = PromotionMode.from_string(mode)
        node = self.topology.nodes.get(node_id)
        if node is None or not node.is_standby:
            LOGGER.debug("make_primary: '%s' is not a standby database", node_id)
            return

        old_primary = self.current_primary()
        if old_primary is not None:
            old_primary.role = Role.STANDBY
        node.role = Role.PRIMARY
        LOGGER.debug("'%s' is now PRIMARY", node.unique_name)

        if mode is PromotionMode.REVERSE_ROUTES and old_primary is not None:
            self._mirror_routes(old_primary, node)

    def _mirror_routes(self, old_primary: Node, new_primary: Node) -> None:
        existing = {
            (r.source, r.target)
            for r in self.topology.routes.values()
            if r.scenario_primary == new_primary.unique_name
        }
        originals = [
            r
            for r in self.topology.routes_from(old_primary.id)
            if r.scenario_primary == old_primary.unique_name
        ]
        for original in originals:
            if original.target == new_primary.id:
                target = old_primary
            else:
                target = self.topology.nodes[original.target]
            if (new_primary.id, target.id) in existing:
                continue
            self.topology.add_route(
                Route(
                    id=f"{new_primary.id}|{target.id}|{new_base64_uuid()}",
                    source=new_primary.id,
                    target=target.id,
                    scenario_primary=new_primary.unique_name,
                    target_name=target.unique_name,
                    transport_mode=original.transport_mode,
                    priority=original.priority,
                    alternate_target_name=(
                        old_primary.unique_name
                        if original.alternate_target_name == new_primary.unique_name
                        else original.alternate_target_name
                    ),
                )
            )
            existing.add((new_primary.id, target.id))

    # ---- Routes -----------------------------------------------------------
    def connect(self, source_id: str, target_id: str) -> Optional[Route]:
        """Create a route scoped to the current primary's scenario.

        Returns:
            The new route, or None when the connection is rejected: unknown
            endpoints, a self-route, an appliance source, a primary target,
            or no primary to scope the route to.
        """
        source = self.topology.nodes.get(source_id)
        target = self.topology.nodes.get(target_id)
        if source is None or target is None:
            reason = "unknown endpoint"
        elif source_id == target_id:
            reason = "self-route"
        elif source.kind is NodeKind.APPLIANCE:
            reason = "appliance cannot send redo"
        elif target.is_primary:
            reason = "target is the primary"
        else:
            reason = ""
        primary = self.current_primary()
        if not reason and primary is None:
            reason = "no primary"
        if reason:
            LOGGER.debug("Rejected route %s -> %s: %s", source_id, target_id, reason)
            return None
        assert source is not None and target is not None and primary is not None

        route = Route(
            id=f"{source_id}|{target_id}|{new_base64_uuid()}",
            source=source_id,
            target=target_id,
            scenario_primary=primary.unique_name,
            target_name=target.unique_name,
            transport_mode=self.limits.default_transport_mode,
            priority=1,
        )
        self.topology.add_route(route)
        return route

    def delete_routes(self, route_ids: Iterable[str]) -> None:
        for route_id in route_ids:
            if self.topology.remove_route(route_id) is None:
                LOGGER.debug("delete_routes: unknown route '%s'", route_id)

    def update_route(self, route_id: str, patch: Mapping[str, Any]) -> None:
        """Merge ``patch`` into a route.

        Editable keys are ``transportMode``, ``priority`` and
        ``alternateTargetName`` (snake_case accepted). An empty alternate
        name clears the linkage.

        Raises:
            ValueError: On a non-editable key, an unknown transport mode or a
                priority outside ``1..limits.max_priority``.
        """
        route = self.topology.routes.get(route_id)
        if route is None:
            LOGGER.debug("update_route: unknown route '%s'", route_id)
            return

        changes: Dict[str, Any] = {}
        for key, value in patch.items():
            attr = _ROUTE_PATCH_KEYS.get(key)
            if attr is None:
                raise ValueError(f"Route attribute '{key}' is not editable")
            if attr == "transport_mode":
                value = TransportMode.from_string(value)
            elif attr == "priority":
                if (
                    isinstance(value, bool)
                    or not isinstance(value, int)
                    or not self.limits.allows_priority(value)
                ):
                    raise ValueError(
                        "priority must be an integer in "
                        f"1..{self.limits.max_priority}, got {value!r}"
                    )
            elif attr == "alternate_target_name":
                if value is not None and not isinstance(value, str):
                    raise ValueError("alternateTargetName must be a string or null")
                value = value or None
            changes[attr] = value

        for attr, value in changes.items():
            setattr(route, attr, value)

    def alternate_candidates(self, route_id: str) -> List[str]:
        """Target names a route may declare as its ``alternateTargetName``.

        Candidates are targets of other routes in the same scenario with a
        smaller priority value and a different target name, in store order.
        """
        route = self.topology.routes.get(route_id)
        if route is None:
            return []
        candidates: List[str] = []
        for other in self.topology.routes.values():
            if (
                other.scenario_primary == route.scenario_primary
                and other.priority < route.priority
                and other.target_name != route.target_name
                and other.target_name not in candidates
            ):
                candidates.append(other.target_name)
        return candidates

    # ---- Derived views ----------------------------------------------------
    def project_scenario(
        self, primary_name: Optional[str] = None
    ) -> List[ProjectedRoute]:
        """Project routes for ``primary_name`` (default: current primary).

        Returns an empty list when no scenario name is available.
        """
        if primary_name is None:
            primary = self.current_primary()
            if primary is None:
                return []
            primary_name = primary.unique_name
        return project_scenario(self.topology.routes.values(), primary_name)

    def validate(
        self, scenario_routes: Optional[List[ProjectedRoute]] = None
    ) -> Dict[str, str]:
        """Warnings per node id for the given (default: current) scenario."""
        if scenario_routes is None:
            scenario_routes = self.project_scenario()
        return validate(self.topology, scenario_routes, self.limits)

    def annotated_nodes(self, scenario: Optional[str] = None) -> List[Dict[str, Any]]:
        """Snapshot-form nodes with a ``warning`` field merged in."""
        warnings = self.validate(self.project_scenario(scenario))
        annotated = []
        for node in self.topology.nodes.values():
            data = node_to_dict(node)
            data["warning"] = warnings[node.id]
            annotated.append(data)
        return annotated

    def compile_statements(self) -> str:
        return compile_statements(self.topology)

    # ---- Snapshots --------------------------------------------------------
    def export_snapshot(self) -> Dict[str, Any]:
        return export_snapshot(self.topology)

    def import_snapshot(self, data: Any) -> None:
        """Replace the store with a snapshot's contents.

        Raises:
            SnapshotError: If the snapshot is malformed; the store is unchanged.
        """
        topology = import_snapshot(data, max_nodes=self.limits.max_nodes)
        next_node_id = self._first_free_id(topology)
        self.topology = topology
        self._next_node_id = next_node_id
        LOGGER.debug(
            "Loaded topology: nodes=%d, routes=%d",
            len(topology.nodes),
            len(topology.routes),
        )

    def reset(self) -> None:
        """Remove every node and route."""
        self.topology = Topology()
        self._next_node_id = 1
