"""
Course platform collection names and index definitions.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel

logger = logging.getLogger(__name__)

USERS = "users"
COURSES = "courses"
ENROLLMENTS = "enrollments"


# ─────────────────────────────────────────────────────────────────
# Indexes
# ─────────────────────────────────────────────────────────────────

INDEXES = {
    USERS: [
        IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
        IndexModel([("role", ASCENDING)], name="role"),
        IndexModel([("isActive", ASCENDING)], name="isActive"),
    ],
    COURSES: [
        IndexModel([("educatorId", ASCENDING)], name="educatorId"),
        IndexModel([("category", ASCENDING)], name="category"),
        IndexModel([("isPublished", ASCENDING), ("createdAt", DESCENDING)], name="published_recent"),
        IndexModel(
            [("title", TEXT), ("description", TEXT), ("tags", TEXT)],
            name="course_text_search",
        ),
    ],
    ENROLLMENTS: [
        IndexModel(
            [("studentId", ASCENDING), ("courseId", ASCENDING)],
            unique=True,
            name="student_course_unique",
        ),
        IndexModel([("studentId", ASCENDING)], name="studentId"),
        IndexModel([("courseId", ASCENDING)], name="courseId"),
    ],
}


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create all indexes the services rely on.

    Safe to run repeatedly; existing indexes with the same definition are kept.

    Args:
        db: MongoDB database connection
    """
    for collection_name, indexes in INDEXES.items():
        names = await db[collection_name].create_indexes(indexes)
        logger.info(f"Ensured indexes on {collection_name}: {names}")
