"""Small, self-contained helpers that do not depend on project internals."""

from redoroute.utils.ids import creation_order_key, new_base64_uuid

__all__ = [
    "creation_order_key",
    "new_base64_uuid",
]
