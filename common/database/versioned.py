"""
Optimistic concurrency for read-modify-write document updates.

Documents carry an integer ``version`` field. A save only replaces the stored
document if its version still matches the one that was read, so two requests
that edit the same document concurrently cannot silently overwrite each other.

Example:
    from common.database.versioned import mutate_versioned

    def add_tag(course: dict) -> None:
        course["tags"].append("python")

    course = await mutate_versioned(
        collection=db["courses"],
        query={"_id": course_id},
        mutate=add_tag,
    )
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from common.utils.exceptions import ConflictException

logger = logging.getLogger(__name__)

DEFAULT_RETRY_LIMIT = 3


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


async def save_versioned(collection, document: Dict[str, Any]) -> bool:
    """
    Replace a document if nobody else saved it since it was read.

    On success the document is updated in place with its new version and
    updatedAt timestamp.

    Args:
        collection: Motor collection
        document: Full document including ``_id`` and the ``version`` it was read at

    Returns:
        True if the document was saved, False if the stored version moved on
    """
    # A null match also covers documents written before versioning existed
    current = document.get("version")
    now = _utcnow()
    replacement = {**document, "version": (current or 0) + 1, "updatedAt": now}

    result = await collection.replace_one(
        {"_id": document["_id"], "version": current},
        replacement,
    )

    if result.matched_count == 0:
        logger.warning(
            f"Version conflict saving {collection.name} document {document['_id']} at version {current}"
        )
        return False

    document["version"] = replacement["version"]
    document["updatedAt"] = now
    logger.debug(f"Saved {collection.name} document {document['_id']} at version {document['version']}")
    return True


async def mutate_versioned(
    collection,
    query: Dict[str, Any],
    mutate: Callable[[Dict[str, Any]], Any],
    retries: int = DEFAULT_RETRY_LIMIT,
) -> Optional[Dict[str, Any]]:
    """
    Load, mutate and save a document, retrying on version conflicts.

    ``mutate`` receives a fresh copy of the document on every attempt and may
    raise to abort the update; nothing is written in that case.

    Args:
        collection: Motor collection
        query: Filter identifying a single document
        mutate: Callable that edits the document in place
        retries: Number of attempts before giving up

    Returns:
        The saved document, or None if no document matched the query

    Raises:
        ConflictException: The document kept changing underneath us
    """
    for attempt in range(1, retries + 1):
        document = await collection.find_one(query)
        if document is None:
            return None

        mutate(document)

        if await save_versioned(collection, document):
            return document

        logger.info(f"Retrying update on {collection.name} ({attempt}/{retries})")

    raise ConflictException(
        message="The resource was modified concurrently, please retry",
        code="CONCURRENT_MODIFICATION",
    )
