"""
Utilities module - Common helpers for API responses, exceptions, and validation.
"""

from common.utils.responses import success_response, error_response, paginated_response
from common.utils.exceptions import (
    APIException,
    ValidationException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    InvalidStateException,
    InternalServerException,
)
from common.utils.password import validate_password

__all__ = [
    "success_response",
    "error_response",
    "paginated_response",
    "APIException",
    "ValidationException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "InvalidStateException",
    "InternalServerException",
    "validate_password",
]
