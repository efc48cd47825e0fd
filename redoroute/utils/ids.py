from __future__ import annotations

import base64
import uuid
from typing import Tuple, Union


def new_base64_uuid() -> str:
    """Return a 22-character URL-safe Base64-encoded UUID4 without padding."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes)[:-2].decode("ascii")


def creation_order_key(node_id: str) -> Tuple[int, Union[int, str]]:
    """Sort key ordering node ids by creation.

    Editor-issued ids are decimal counters, so numeric ids compare as integers
    ("9" before "10"). Ids from foreign snapshots that are not decimal sort
    after all numeric ids, lexicographically.

    Args:
        node_id: Node identifier.

    Returns:
        Tuple usable as a ``sorted`` key.
    """
    if node_id.isascii() and node_id.isdecimal():
        return (0, int(node_id))
    return (1, node_id)
