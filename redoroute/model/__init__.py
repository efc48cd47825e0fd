"""Topology data model: node and route records, enums and snapshots."""

from redoroute.model.snapshot import (
    SnapshotError,
    export_snapshot,
    import_snapshot,
)
from redoroute.model.topology import Node, Route, Topology
from redoroute.model.types import NodeKind, PromotionMode, Role, TransportMode

__all__ = [
    # Store
    "Topology",
    "Node",
    "Route",
    # Enums
    "NodeKind",
    "Role",
    "TransportMode",
    "PromotionMode",
    # Snapshots
    "SnapshotError",
    "export_snapshot",
    "import_snapshot",
]
