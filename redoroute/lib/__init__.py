"""Integration modules for external libraries."""

from redoroute.lib.nx import to_networkx

__all__ = ["to_networkx"]
