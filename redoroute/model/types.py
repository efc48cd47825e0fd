"""Enumerations for node kinds, database roles and transport modes."""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar

_E = TypeVar("_E", bound="_TokenEnum")


class _TokenEnum(str, Enum):
    """String enum whose value is the canonical uppercase token."""

    @classmethod
    def from_string(cls: Type[_E], value: str) -> _E:
        """Parse a case-insensitive token into an enum member.

        Args:
            value: Token such as ``"async"`` or ``"ASYNC"``.

        Returns:
            The matching enum member.

        Raises:
            ValueError: If the token does not name a member.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = ", ".join(e.name for e in cls)
            raise ValueError(
                f"Invalid {cls.__name__} '{value}'. Valid values are: {valid}"
            ) from None

    def __str__(self) -> str:
        return self.value


class NodeKind(_TokenEnum):
    """Kind of participant in the redo-transport network."""

    #: A database that can hold the PRIMARY or STANDBY role.
    DATABASE = "DATABASE"
    #: A relay that forwards redo without applying it (far sync instance).
    RELAY = "RELAY"
    #: A backup appliance that only receives redo.
    APPLIANCE = "APPLIANCE"


class Role(_TokenEnum):
    """Role of a DATABASE node."""

    PRIMARY = "PRIMARY"
    STANDBY = "STANDBY"


class TransportMode(_TokenEnum):
    """Redo transport mode of a route."""

    SYNC = "SYNC"
    ASYNC = "ASYNC"
    FASTSYNC = "FASTSYNC"


class PromotionMode(_TokenEnum):
    """How ``make_primary`` treats routes when the primary changes."""

    #: Swap roles only; routes are left untouched.
    SWAP = "SWAP"
    #: Swap roles and mirror the old primary's routes onto the new primary.
    REVERSE_ROUTES = "REVERSE_ROUTES"
