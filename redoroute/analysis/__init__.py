"""Derived views over a topology: scenario projection and validation."""

from redoroute.analysis.projection import ProjectedRoute, project_scenario
from redoroute.analysis.validation import find_cycle_members, node_warnings, validate

__all__ = [
    "ProjectedRoute",
    "project_scenario",
    "find_cycle_members",
    "node_warnings",
    "validate",
]
