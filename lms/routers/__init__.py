"""
Course platform API routers.

All routers are imported here for easy access.
"""

from lms.routers.auth import router as auth_router
from lms.routers.users import router as users_router
from lms.routers.courses import router as courses_router
from lms.routers.lessons import router as lessons_router
from lms.routers.enrollments import router as enrollments_router

__all__ = [
    "auth_router",
    "users_router",
    "courses_router",
    "lessons_router",
    "enrollments_router",
]
