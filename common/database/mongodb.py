"""
Async MongoDB connection using Motor.

One instance per process; services receive the database handle (``db``) and
own their collections.

Example:
    from common.database import MongoDB

    mongo = MongoDB()
    await mongo.connect("mongodb://localhost:27017", "lms")
    courses = mongo.db["courses"]
    ...
    await mongo.disconnect()
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def _mask_uri(uri: str) -> str:
    # Keep host/port, drop credentials
    return uri.split("@")[-1] if "@" in uri else uri


class MongoDB:
    """Owns the Motor client for the lifetime of the application."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None

    async def connect(
        self,
        uri: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        """
        Open the client and fail fast if the server cannot be reached.

        Args:
            uri: MongoDB connection string
            database_name: Database holding users, courses and enrollments
            server_selection_timeout_ms: How long to wait for a reachable server

        Raises:
            PyMongoError: Server unreachable or authentication failed
        """
        logger.info(f"Connecting to MongoDB at {_mask_uri(uri)} (database {database_name})")

        client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=server_selection_timeout_ms)
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error(f"MongoDB unreachable at {_mask_uri(uri)}: {e}")
            client.close()
            raise

        self._client = client
        self._database_name = database_name
        logger.info("MongoDB connection established")

    async def disconnect(self) -> None:
        """Close the client. Safe to call when not connected."""
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._database_name = None
        logger.info("MongoDB connection closed")

    async def ping(self) -> bool:
        """Round-trip to the server; False when disconnected or unreachable."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """
        The application database.

        Raises:
            RuntimeError: connect() has not been called
        """
        if self._client is None:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]
