"""
ObjectId helpers for ids arriving over the wire.
"""

from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id from the wire, None if it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def new_id() -> str:
    """Fresh id string for embedded sub-documents (lessons, notes)."""
    return str(ObjectId())
