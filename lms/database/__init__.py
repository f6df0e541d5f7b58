"""
Course platform database helpers.
"""

from lms.database.collections import USERS, COURSES, ENROLLMENTS, ensure_indexes
from lms.database.ids import to_object_id, new_id

__all__ = ["USERS", "COURSES", "ENROLLMENTS", "ensure_indexes", "to_object_id", "new_id"]
