"""
Database module - Generic async MongoDB connection using Motor.

Provides reusable MongoDB connectivity and optimistic versioned saves.

Usage:
    from common.database import MongoDB

    mongo = MongoDB()
    await mongo.connect(uri, database_name)
    users = mongo.db["users"]
"""

from common.database.mongodb import MongoDB
from common.database.versioned import save_versioned, mutate_versioned

__all__ = [
    "MongoDB",
    # Optimistic concurrency
    "save_versioned",
    "mutate_versioned",
]
