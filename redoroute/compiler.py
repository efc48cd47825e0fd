"""RedoRoutes statement compiler.

Turns the full route set (all scenarios) into one ``EDIT ... SET PROPERTY
RedoRoutes`` statement per source node::

    EDIT DATABASE S SET PROPERTY RedoRoutes = '(P1: (X SYNC PRIORITY=1, Y ASYNC PRIORITY=2))(P2: Z ASYNC)';

Per source, routes are grouped by scenario. Within a scenario every
priority-1 route heads a chain; same-scenario routes with a higher priority
whose ``alternate_target_name`` names the head's target join that chain.
Routes left unclaimed become single-route chains.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from redoroute.logging import get_logger
from redoroute.model.topology import Route, Topology

LOGGER = get_logger(__name__)


@dataclass
class Chain:
    """A chain head and its alternates, ordered by ascending priority."""

    routes: List[Route] = field(default_factory=list)

    @property
    def min_priority(self) -> int:
        return min(r.priority for r in self.routes)

    def render(self) -> str:
        if len(self.routes) == 1:
            route = self.routes[0]
            return f"{route.target_name} {route.transport_mode.value}"
        members = ", ".join(
            f"{r.target_name} {r.transport_mode.value} PRIORITY={r.priority}"
            for r in self.routes
        )
        return f"({members})"


def group_by_scenario(routes: Iterable[Route]) -> Dict[str, List[Route]]:
    """Group routes by ``scenario_primary`` in first-seen order."""
    groups: Dict[str, List[Route]] = {}
    for route in routes:
        groups.setdefault(route.scenario_primary, []).append(route)
    return groups


def build_chains(routes: List[Route]) -> List[Chain]:
    """Build the ordered chains of one source within one scenario.

    Args:
        routes: Routes of a single source and scenario, in store order.

    Returns:
        Chains sorted by minimum priority; equal minimums keep store order,
        with chain heads ahead of unclaimed routes.
    """
    claimed: Set[str] = set()
    chains: List[Chain] = []

    for head in routes:
        if head.priority != 1 or head.id in claimed:
            continue
        claimed.add(head.id)
        alternates = [
            r
            for r in routes
            if r.id not in claimed
            and r.priority > 1
            and r.alternate_target_name == head.target_name
        ]
        alternates.sort(key=lambda r: r.priority)
        claimed.update(r.id for r in alternates)
        chains.append(Chain([head, *alternates]))

    chains.extend(Chain([r]) for r in routes if r.id not in claimed)
    chains.sort(key=lambda c: c.min_priority)
    return chains


def render_routes(routes: Iterable[Route]) -> str:
    """Render the RedoRoutes value for one source's routes."""
    rendered = []
    for scenario, group in group_by_scenario(routes).items():
        chains = ", ".join(chain.render() for chain in build_chains(group))
        rendered.append(f"({scenario}: {chains})")
    return "".join(rendered)


def duplicate_unique_names(topology: Topology) -> List[str]:
    """Return unique names carried by more than one node, in store order."""
    counts = Counter(n.unique_name for n in topology.nodes.values())
    return [name for name, count in counts.items() if count > 1]


def compile_statements(topology: Topology) -> str:
    """Compile every source node's routes into RedoRoutes statements.

    Sources appear in the order their first route was stored. Nodes without
    routes emit nothing; routes whose source node is missing are skipped.

    Returns:
        Statements joined by newlines ("" when there are no routes).
    """
    for name in duplicate_unique_names(topology):
        LOGGER.warning("Unique name '%s' is used by more than one node", name)

    by_source: Dict[str, List[Route]] = {}
    for route in topology.routes.values():
        by_source.setdefault(route.source, []).append(route)

    lines: List[str] = []
    for source_id, routes in by_source.items():
        source = topology.nodes.get(source_id)
        if source is None:
            LOGGER.debug("Skipping routes of unknown source node '%s'", source_id)
            continue
        lines.append(
            f"EDIT {source.kind.value} {source.unique_name} "
            f"SET PROPERTY RedoRoutes = '{render_routes(routes)}';"
        )
    return "\n".join(lines)
