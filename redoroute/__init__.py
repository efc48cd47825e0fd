"""redoroute: redo-transport topology modeling and RedoRoutes generation.

Build a directed graph of databases, relays and appliances, scope each route
to the database that must be primary for it to apply, then validate the graph
per scenario and compile per-node ``RedoRoutes`` statements.

Primary API:
    TopologyEditor - mutation operations and derived views over one topology
    project_scenario() - routes active for a given primary
    validate() - per-node structural warnings
    compile_statements() - RedoRoutes statements for every source node

Example:
    from redoroute import NodeKind, TopologyEditor

    editor = TopologyEditor()
    primary = editor.add_node(NodeKind.DATABASE)
    standby = editor.add_standby()
    print(editor.compile_statements())
"""

from __future__ import annotations

from redoroute import cli, logging
from redoroute._version import __version__
from redoroute.analysis import ProjectedRoute, project_scenario, validate
from redoroute.compiler import compile_statements
from redoroute.config import DEFAULT_LIMITS, TopologyLimits
from redoroute.editor import TopologyEditor
from redoroute.lib.nx import to_networkx
from redoroute.model import (
    Node,
    NodeKind,
    PromotionMode,
    Role,
    Route,
    SnapshotError,
    Topology,
    TransportMode,
    export_snapshot,
    import_snapshot,
)

__all__ = [
    # Version
    "__version__",
    # Model
    "Topology",
    "Node",
    "Route",
    "NodeKind",
    "Role",
    "TransportMode",
    "PromotionMode",
    # Editing
    "TopologyEditor",
    "TopologyLimits",
    "DEFAULT_LIMITS",
    # Derived views
    "ProjectedRoute",
    "project_scenario",
    "validate",
    "compile_statements",
    # Snapshots
    "SnapshotError",
    "export_snapshot",
    "import_snapshot",
    # Library integrations (NetworkX)
    "to_networkx",
    # Utilities
    "cli",
    "logging",
]
