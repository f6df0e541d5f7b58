"""
HTTP exceptions carrying a machine-readable error code.

Services and pipelines raise these; common.utils.handlers renders them into
the error envelope. Business-rule failures (validation, conflicts, illegal
state transitions) all map to 400 and are told apart by ``code``.

Example:
    from common.utils import NotFoundException

    course = await course_service.get_course(course_id)
    if not course:
        raise NotFoundException("Course not found", code="COURSE_NOT_FOUND")
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base class for every error the API reports on purpose.

    Subclasses fix the status code and a default code; callers usually pass a
    more specific code such as ``COURSE_NOT_FOUND``.
    """

    status_code: int = 500
    default_message: str = "Internal server error"
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Extra context for clients
            errors: Field-level errors as {"field", "message"} dicts
            headers: Optional response headers
        """
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        self.errors = errors

        detail: Dict[str, Any] = {"message": self.message, "code": self.code}
        if details is not None:
            detail["details"] = details
        if errors:
            detail["errors"] = errors

        super().__init__(status_code=self.status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return f"{self.status_code} {self.code}: {self.message}"


class ValidationException(APIException):
    """Input is malformed or out of range."""
    status_code = 400
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"


class ConflictException(APIException):
    """Duplicate resource or an edit that lost a race (reported as 400)."""
    status_code = 400
    default_message = "Conflict"
    default_code = "CONFLICT"


class InvalidStateException(APIException):
    """Operation not allowed in the resource's current state (reported as 400)."""
    status_code = 400
    default_message = "Invalid state"
    default_code = "INVALID_STATE"


class UnauthorizedException(APIException):
    """Missing, invalid or revoked credentials."""
    status_code = 401
    default_message = "Not authorized to access this route"
    default_code = "UNAUTHORIZED"


class ForbiddenException(APIException):
    """Authenticated, but the role or ownership check failed."""
    status_code = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    """Resource does not exist, or is not visible to the caller."""
    status_code = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class InternalServerException(APIException):
    """Server-side failure the client may retry."""
    status_code = 500
