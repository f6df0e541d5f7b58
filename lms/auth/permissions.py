"""
Roles and the capability table.

Every role check in the API goes through ``authorize``; routes name the
capability they need instead of listing role strings.
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional

from common.utils.exceptions import ForbiddenException

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Account role. Fixed at registration."""
    STUDENT = "student"
    EDUCATOR = "educator"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Map a stored role string to a Role, None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


class Capability(str, Enum):
    """Operations guarded by role."""
    COURSE_CREATE = "course:create"
    COURSE_MANAGE = "course:manage"
    COURSE_LIST_OWN = "course:list-own"
    COURSE_REVIEW = "course:review"
    LESSON_MANAGE = "lesson:manage"
    LESSON_VIEW = "lesson:view"
    ENROLL = "enrollment:create"
    ENROLLMENT_ACCESS = "enrollment:access"
    USER_LIST = "user:list"
    USER_STATS = "user:stats"
    USER_DEACTIVATE = "user:deactivate"
    USER_PROFILE = "user:profile"


ALL_ROLES: FrozenSet[Role] = frozenset(Role)
STAFF: FrozenSet[Role] = frozenset({Role.EDUCATOR, Role.ADMIN})
ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.ADMIN})

# Ownership / enrollment predicates are enforced by the pipelines on top of these
CAPABILITIES: Dict[Capability, FrozenSet[Role]] = {
    Capability.COURSE_CREATE: STAFF,
    Capability.COURSE_MANAGE: STAFF,
    Capability.COURSE_LIST_OWN: STAFF,
    Capability.COURSE_REVIEW: ALL_ROLES,
    Capability.LESSON_MANAGE: STAFF,
    Capability.LESSON_VIEW: ALL_ROLES,
    Capability.ENROLL: frozenset({Role.STUDENT}),
    Capability.ENROLLMENT_ACCESS: ALL_ROLES,
    Capability.USER_LIST: ADMIN_ONLY,
    Capability.USER_STATS: ADMIN_ONLY,
    Capability.USER_DEACTIVATE: ADMIN_ONLY,
    Capability.USER_PROFILE: ALL_ROLES,
}


def can(user: dict, capability: Capability) -> bool:
    """Check whether the user's role grants the capability."""
    role = Role.parse(user.get("role"))
    return role is not None and role in CAPABILITIES[capability]


def authorize(user: dict, capability: Capability) -> dict:
    """
    Require that the user's role grants the capability.

    Args:
        user: Resolved user document
        capability: Capability being exercised

    Returns:
        The same user, for chaining in dependencies

    Raises:
        ForbiddenException: Role not allowed
    """
    if not can(user, capability):
        logger.info(f"User {user.get('_id')} with role {user.get('role')} denied {capability.value}")
        raise ForbiddenException(
            message=f"User role {user.get('role')} is not authorized to access this route",
            code="ROLE_NOT_ALLOWED",
        )
    return user


def is_admin(user: Optional[dict]) -> bool:
    """Check if the user is an admin."""
    return user is not None and Role.parse(user.get("role")) == Role.ADMIN
