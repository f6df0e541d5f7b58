"""
Auth pipeline functions.

Stateless orchestration logic for registration, login, logout and the
caller's own account.
"""

import logging
from typing import Any, Dict, Optional

from common.auth import JWTAuth
from common.utils import validate_password
from common.utils.exceptions import (
    ConflictException,
    UnauthorizedException,
    ValidationException,
)
from lms.auth import Role
from lms.services.user import UserService

logger = logging.getLogger(__name__)

SELF_REGISTRATION_ROLES = (Role.STUDENT, Role.EDUCATOR)
PROFILE_FIELDS = ("name", "avatar", "bio")


def check_password_policy(password: str, min_length: int, field: str = "password") -> None:
    """
    Enforce the password policy.

    Raises:
        ValidationException: Password too short, no letter, no digit, or too common
    """
    is_valid, problems = validate_password(password, min_length=min_length)
    if not is_valid:
        raise ValidationException(
            message="Password does not meet requirements",
            errors=[{"field": field, "message": problem} for problem in problems],
        )


async def _issue_token(jwt_auth: JWTAuth, user: dict) -> str:
    return await jwt_auth.create_token(str(user["_id"]), role=user.get("role"))


async def register_pipeline(
    user_service: UserService,
    jwt_auth: JWTAuth,
    name: str,
    email: str,
    password: str,
    role: str = Role.STUDENT.value,
    password_min_length: int = 6,
) -> Dict[str, Any]:
    """
    Orchestrates the registration flow.

    Args:
        user_service: For creating the user record
        jwt_auth: For hashing the password and issuing a token
        name: Display name
        email: Email address
        password: Plain-text password
        role: student or educator
        password_min_length: Minimum password length

    Returns:
        dict with user and token

    Raises:
        ValidationException: Password policy or role not allowed
        ConflictException: Email already registered
    """
    if Role.parse(role) not in SELF_REGISTRATION_ROLES:
        raise ValidationException(
            message="Invalid role",
            errors=[{"field": "role", "message": "Role must be student or educator"}],
        )

    check_password_policy(password, password_min_length)

    # Fast path; the unique index on email has the final word
    if await user_service.get_user_by_email(email):
        raise ConflictException(
            message="User already exists with this email",
            code="EMAIL_ALREADY_REGISTERED",
        )

    user = await user_service.create_user(
        name=name,
        email=email,
        password_hash=jwt_auth.hash_password(password),
        role=role,
    )

    token = await _issue_token(jwt_auth, user)
    logger.info(f"User registered: {user['_id']} ({role})")

    return {"user": UserService.format_user(user), "token": token}


async def login_pipeline(
    user_service: UserService,
    jwt_auth: JWTAuth,
    email: str,
    password: str,
) -> Dict[str, Any]:
    """
    Orchestrates the login flow.

    Returns:
        dict with user and token

    Raises:
        UnauthorizedException: Unknown email, wrong password, or deactivated account
    """
    user = await user_service.get_user_by_email(email)

    if not user or not jwt_auth.verify_password(password, user.get("passwordHash", "")):
        logger.info(f"Failed login for {email}")
        raise UnauthorizedException(message="Invalid credentials", code="INVALID_CREDENTIALS")

    if not user.get("isActive", True):
        raise UnauthorizedException(message="Account has been deactivated", code="ACCOUNT_DEACTIVATED")

    await user_service.update_last_login(user["_id"])

    token = await _issue_token(jwt_auth, user)
    logger.info(f"User logged in: {user['_id']}")

    return {"user": UserService.format_user(user), "token": token}


async def logout_pipeline(jwt_auth: JWTAuth, token: Optional[str]) -> None:
    """Revoke the token the caller authenticated with."""
    if token:
        await jwt_auth.revoke_token(token)


async def update_profile_pipeline(
    user_service: UserService,
    user: dict,
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update the caller's own name, avatar or bio.

    Args:
        user_service: For the update
        user: Authenticated user
        updates: Requested changes; other fields are ignored

    Returns:
        Formatted updated user
    """
    changes = {k: v for k, v in updates.items() if k in PROFILE_FIELDS and v is not None}
    if not changes:
        return UserService.format_user(user)

    updated = await user_service.update_user(str(user["_id"]), changes)
    return UserService.format_user(updated)


async def change_password_pipeline(
    user_service: UserService,
    jwt_auth: JWTAuth,
    user: dict,
    current_password: str,
    new_password: str,
    password_min_length: int = 6,
) -> None:
    """
    Change the caller's password.

    Raises:
        UnauthorizedException: Current password is wrong
        ValidationException: New password fails the policy
    """
    if not jwt_auth.verify_password(current_password, user.get("passwordHash", "")):
        raise UnauthorizedException(message="Current password is incorrect", code="INVALID_PASSWORD")

    check_password_policy(new_password, password_min_length, field="newPassword")

    await user_service.set_password(user["_id"], jwt_auth.hash_password(new_password))
