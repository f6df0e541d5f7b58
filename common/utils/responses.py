"""
Response envelope helpers.

Every body the API returns has the shape

    {"status": "success" | "error", "message"?: str, "data"?: any,
     "errors"?: [{"field", "message"}], "code"?: str}

Example:
    from common.utils import success_response

    @router.get("/{course_id}")
    async def get_course(course_id: str):
        return success_response({"course": await load_course(course_id)})
"""

from typing import Any, Dict, List, Optional


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope; message and data are omitted when not given."""
    body: Dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Error envelope.

    Args:
        message: Human-readable summary
        code: Machine-readable code, e.g. "ENROLLMENT_NOT_FOUND"
        details: Extra context
        errors: Field-level problems for validation failures
    """
    body: Dict[str, Any] = {"status": "error", "message": message}
    if code:
        body["code"] = code
    if details is not None:
        body["details"] = details
    if errors:
        body["errors"] = errors
    return body


def paginated_response(
    items: list,
    key: str,
    total: int,
    page: int = 1,
    limit: int = 10,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Success envelope for one page of a listing.

    ``data`` holds the items under ``key`` next to a ``pagination`` block
    with page, limit, total and the number of pages.
    """
    pages = -(-total // limit) if limit > 0 else 0
    return success_response(
        {
            key: items,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": pages},
        },
        message=message,
    )
