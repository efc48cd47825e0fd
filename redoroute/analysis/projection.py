"""Scenario projection: which routes are active when a given node is primary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from redoroute.model.topology import Route
from redoroute.model.types import TransportMode


@dataclass(frozen=True)
class ProjectedRoute:
    """A route active in the projected scenario.

    Attributes:
        route: The stored route.
        is_effective: True when no other active route to the same target has
            a smaller priority value.
    """

    route: Route
    is_effective: bool

    @property
    def id(self) -> str:
        return self.route.id

    @property
    def source(self) -> str:
        return self.route.source

    @property
    def target(self) -> str:
        return self.route.target

    @property
    def priority(self) -> int:
        return self.route.priority

    @property
    def transport_mode(self) -> TransportMode:
        return self.route.transport_mode


def project_scenario(
    routes: Iterable[Route], scenario_name: str
) -> List[ProjectedRoute]:
    """Select the routes of one scenario and mark the effective ones.

    For every target, all active routes at the minimum priority are effective.
    Ties stay effective; the validation engine reports them as fan-in.

    Args:
        routes: Full route set, in store order.
        scenario_name: Unique name of the node considered primary.

    Returns:
        Active routes in store order, each annotated with ``is_effective``.
    """
    active = [r for r in routes if r.scenario_primary == scenario_name]

    best: Dict[str, int] = {}
    for route in active:
        current = best.get(route.target)
        if current is None or route.priority < current:
            best[route.target] = route.priority

    return [ProjectedRoute(r, r.priority == best[r.target]) for r in active]
