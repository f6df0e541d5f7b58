"""
User administration pipeline functions.

Stateless orchestration logic for account management and educator directory.
"""

import logging
from typing import Any, Dict, List, Tuple

from common.utils.exceptions import ForbiddenException, NotFoundException
from lms.auth import is_admin
from lms.services.course import CourseService
from lms.services.user import UserService

logger = logging.getLogger(__name__)

SELF_EDITABLE_FIELDS = ("name", "avatar", "bio")
ADMIN_EDITABLE_FIELDS = SELF_EDITABLE_FIELDS + ("isActive", "isEmailVerified")


def _is_self(caller: dict, user_id: str) -> bool:
    return str(caller["_id"]) == str(user_id)


async def list_users_pipeline(
    user_service: UserService,
    page: int,
    limit: int,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Page of all users, newest first.

    Returns:
        (formatted users, total user count)
    """
    users, total = await user_service.list_users(page, limit)
    return [UserService.format_user(u) for u in users], total


async def get_user_pipeline(
    user_service: UserService,
    caller: dict,
    user_id: str,
) -> Dict[str, Any]:
    """
    Get a user's account. Callers may only read themselves unless admin.

    Raises:
        NotFoundException: User not found
        ForbiddenException: Not self and not admin
    """
    user = await user_service.get_user_by_id(user_id)

    if not user:
        raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

    if not is_admin(caller) and not _is_self(caller, user_id):
        raise ForbiddenException(message="Not authorized to view this profile", code="NOT_PROFILE_OWNER")

    return UserService.format_user(user)


async def update_user_pipeline(
    user_service: UserService,
    caller: dict,
    user_id: str,
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update a user's account.

    Self may change name, avatar and bio; admins may also change isActive and
    isEmailVerified. Role and email never change here.

    Raises:
        ForbiddenException: Not self and not admin
        NotFoundException: User not found
    """
    if not is_admin(caller) and not _is_self(caller, user_id):
        raise ForbiddenException(message="Not authorized to update this profile", code="NOT_PROFILE_OWNER")

    allowed = ADMIN_EDITABLE_FIELDS if is_admin(caller) else SELF_EDITABLE_FIELDS
    changes = {k: v for k, v in updates.items() if k in allowed and v is not None}

    if changes:
        user = await user_service.update_user(user_id, changes)
    else:
        user = await user_service.get_user_by_id(user_id)

    if not user:
        raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

    return UserService.format_user(user)


async def deactivate_user_pipeline(user_service: UserService, user_id: str) -> None:
    """
    Soft-delete a user.

    Raises:
        NotFoundException: User not found
    """
    user = await user_service.deactivate_user(user_id)
    if not user:
        raise NotFoundException(message="User not found", code="USER_NOT_FOUND")


async def list_educators_pipeline(user_service: UserService) -> Dict[str, Any]:
    """Public directory of active educators."""
    educators = await user_service.list_educators()
    return {"educators": [UserService.format_public_profile(e) for e in educators]}


async def get_educator_pipeline(
    user_service: UserService,
    course_service: CourseService,
    educator_id: str,
) -> Dict[str, Any]:
    """
    Public educator profile with their published courses.

    Raises:
        NotFoundException: Not an active educator
    """
    educator = await user_service.get_educator(educator_id)
    if not educator:
        raise NotFoundException(message="Educator not found", code="EDUCATOR_NOT_FOUND")

    courses = await course_service.list_by_educator(educator_id, published_only=True)
    profile = UserService.format_public_profile(educator)

    return {
        "educator": profile,
        "courses": [CourseService.format_summary(c) for c in courses],
    }


async def get_stats_pipeline(user_service: UserService, recent_days: int = 30) -> Dict[str, Any]:
    """Account statistics for admins."""
    return {"stats": await user_service.get_stats(recent_days)}
