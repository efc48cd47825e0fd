"""Configuration for topology limits and route defaults."""

from dataclasses import dataclass

from redoroute.model.types import TransportMode


@dataclass(frozen=True)
class TopologyLimits:
    """Capacity limits applied by the editor and the validation engine."""

    # Upper bound on the number of nodes in one topology
    max_nodes: int = 127

    # Routes from the primary that may use SYNC or FASTSYNC transport
    max_non_async_destinations: int = 10

    # Routes from the primary regardless of transport mode
    max_direct_destinations: int = 30

    # RedoRoutes priorities run from 1 to this value
    max_priority: int = 8

    # Transport mode assigned to newly connected routes
    default_transport_mode: TransportMode = TransportMode.ASYNC

    def allows_priority(self, priority: int) -> bool:
        """Return True when ``priority`` lies in ``1..max_priority``."""
        return 1 <= priority <= self.max_priority


# Global default instance
DEFAULT_LIMITS = TopologyLimits()
