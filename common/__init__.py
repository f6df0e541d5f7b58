"""
Common library for reusable infrastructure components.

This package provides generic modules that can be used across projects:

- database: Async MongoDB connection (Motor) and optimistic versioning
- auth: JWT tokens and bcrypt password hashing
- utils: Standard responses, exceptions, exception handlers, password validation
- config: Base settings class
"""

from common.database import MongoDB, save_versioned, mutate_versioned
from common.auth import JWTAuth
from common.utils import (
    success_response,
    error_response,
    paginated_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    ConflictException,
    InvalidStateException,
    validate_password,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    "save_versioned",
    "mutate_versioned",
    # Auth
    "JWTAuth",
    # Utils
    "success_response",
    "error_response",
    "paginated_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "ConflictException",
    "InvalidStateException",
    "validate_password",
    # Config
    "BaseAppSettings",
]
