"""
FastAPI router for auth endpoints.

Registration, login, logout and the caller's own account.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from lms.dependencies import (
    get_jwt_auth,
    get_settings,
    get_user_service,
    require_auth,
)
from lms.pipelines import auth as auth_pipelines
from lms.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    UpdateProfileRequest,
    ChangePasswordRequest,
)
from lms.services.user import UserService
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
):
    """
    Register a new account.

    Returns the user and a token; the token is also set as a cookie.
    """
    result = await auth_pipelines.register_pipeline(
        user_service=get_user_service(),
        jwt_auth=get_jwt_auth(),
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        password_min_length=get_settings().PASSWORD_MIN_LENGTH,
    )

    _set_auth_cookie(response, result["token"])
    return success_response(result, message="User registered successfully")


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
):
    """Authenticate with email and password."""
    result = await auth_pipelines.login_pipeline(
        user_service=get_user_service(),
        jwt_auth=get_jwt_auth(),
        email=body.email,
        password=body.password,
    )

    _set_auth_cookie(response, result["token"])
    return success_response(result, message="Login successful")


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    user: Annotated[dict, Depends(require_auth)],
):
    """Revoke the current token and clear the auth cookie."""
    await auth_pipelines.logout_pipeline(get_jwt_auth(), getattr(request.state, "token", None))
    response.delete_cookie(get_settings().AUTH_COOKIE_NAME)

    logger.info(f"User logged out: {user['_id']}")
    return success_response(message="Logged out successfully")


@router.get("/me")
async def me(
    user: Annotated[dict, Depends(require_auth)],
):
    """Get the authenticated user."""
    return success_response({"user": UserService.format_user(user)})


@router.put("/profile")
async def update_profile(
    body: UpdateProfileRequest,
    user: Annotated[dict, Depends(require_auth)],
):
    """Update the caller's name, avatar or bio."""
    updated = await auth_pipelines.update_profile_pipeline(
        user_service=get_user_service(),
        user=user,
        updates=body.model_dump(exclude_unset=True),
    )
    return success_response({"user": updated}, message="Profile updated successfully")


@router.put("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    user: Annotated[dict, Depends(require_auth)],
):
    """Change the caller's password."""
    await auth_pipelines.change_password_pipeline(
        user_service=get_user_service(),
        jwt_auth=get_jwt_auth(),
        user=user,
        current_password=body.currentPassword,
        new_password=body.newPassword,
        password_min_length=get_settings().PASSWORD_MIN_LENGTH,
    )
    return success_response(message="Password changed successfully")
