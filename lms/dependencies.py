"""
FastAPI dependencies for the course platform.

Provides dependency injection for all services.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth
from lms.auth import Capability, authorize
from lms.config import Settings, settings as default_settings
from lms.middleware.auth import AuthMiddleware
from lms.services.course import CourseService
from lms.services.enrollment import EnrollmentService
from lms.services.user import UserService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

_settings: Optional[Settings] = None

# Auth
_jwt_auth: Optional[JWTAuth] = None
_auth_middleware: Optional[AuthMiddleware] = None

# Aggregates
_user_service: Optional[UserService] = None
_course_service: Optional[CourseService] = None
_enrollment_service: Optional[EnrollmentService] = None

# Main database
_main_db: Optional[AsyncIOMotorDatabase] = None


# ─────────────────────────────────────────────────────────────────
# Initialization functions
# ─────────────────────────────────────────────────────────────────

def init_domain_services(db: AsyncIOMotorDatabase, app_settings: Settings) -> None:
    """Initialize user, course and enrollment services."""
    global _user_service, _course_service, _enrollment_service

    retry_limit = app_settings.OPTIMISTIC_RETRY_LIMIT

    _user_service = UserService(db=db)
    _course_service = CourseService(db=db, retry_limit=retry_limit)
    _enrollment_service = EnrollmentService(db=db, retry_limit=retry_limit)


def init_auth_services(app_settings: Settings) -> None:
    """Initialize token handling and the auth middleware."""
    global _jwt_auth, _auth_middleware

    _jwt_auth = JWTAuth(
        secret=app_settings.get_jwt_secret(),
        algorithm=app_settings.JWT_ALGORITHM,
        access_token_expire_minutes=app_settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )

    _auth_middleware = AuthMiddleware(
        jwt_auth=_jwt_auth,
        user_service=_user_service,
        cookie_name=app_settings.AUTH_COOKIE_NAME,
    )


def init_all_services(
    db: AsyncIOMotorDatabase,
    app_settings: Optional[Settings] = None,
) -> None:
    """
    Initialize all services at application startup.

    Args:
        db: Main MongoDB database connection
        app_settings: Settings to use (defaults to the environment settings)
    """
    global _main_db, _settings
    _main_db = db
    _settings = app_settings or default_settings

    init_domain_services(db, _settings)
    init_auth_services(_settings)


# ─────────────────────────────────────────────────────────────────
# Settings / database getters
# ─────────────────────────────────────────────────────────────────

def get_settings() -> Settings:
    """Get the active settings."""
    return _settings or default_settings


def get_main_db() -> AsyncIOMotorDatabase:
    """Get main database instance."""
    if _main_db is None:
        raise RuntimeError("Main database not initialized.")
    return _main_db


# ─────────────────────────────────────────────────────────────────
# Auth getters
# ─────────────────────────────────────────────────────────────────

def get_jwt_auth() -> JWTAuth:
    """Get JWT auth provider."""
    if _jwt_auth is None:
        raise RuntimeError("Auth services not initialized.")
    return _jwt_auth


def get_auth_middleware() -> AuthMiddleware:
    """Get auth middleware instance."""
    if _auth_middleware is None:
        raise RuntimeError("Auth services not initialized.")
    return _auth_middleware


async def require_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> dict:
    """Dependency that requires authentication."""
    return await auth_middleware.require_auth(request)


async def optional_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> Optional[dict]:
    """Dependency that optionally authenticates."""
    return await auth_middleware.optional_auth(request)


def require_capability(capability: Capability) -> Callable:
    """
    Build a dependency that authenticates and checks the role's capability.

    Example:
        @router.post("")
        async def create(user: Annotated[dict, Depends(require_capability(Capability.COURSE_CREATE))]):
            ...
    """
    async def dependency(user: Annotated[dict, Depends(require_auth)]) -> dict:
        return authorize(user, capability)

    return dependency


# ─────────────────────────────────────────────────────────────────
# Service getters
# ─────────────────────────────────────────────────────────────────

def get_user_service() -> UserService:
    """Get user service instance."""
    if _user_service is None:
        raise RuntimeError("User services not initialized.")
    return _user_service


def get_course_service() -> CourseService:
    """Get course service instance."""
    if _course_service is None:
        raise RuntimeError("Course services not initialized.")
    return _course_service


def get_enrollment_service() -> EnrollmentService:
    """Get enrollment service instance."""
    if _enrollment_service is None:
        raise RuntimeError("Enrollment services not initialized.")
    return _enrollment_service
