"""
FastAPI router for user administration and the educator directory.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from lms.auth import Capability
from lms.dependencies import (
    get_course_service,
    get_settings,
    get_user_service,
    require_capability,
)
from lms.pipelines import users as user_pipelines
from lms.schemas.user import UpdateUserRequest
from common.utils import success_response, paginated_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    user: Annotated[dict, Depends(require_capability(Capability.USER_LIST))],
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
):
    """List all users, newest first (admin)."""
    limit = limit or get_settings().USERS_DEFAULT_PAGE_SIZE
    users, total = await user_pipelines.list_users_pipeline(get_user_service(), page, limit)
    return paginated_response(users, "users", total, page, limit)


@router.get("/stats")
async def get_stats(
    user: Annotated[dict, Depends(require_capability(Capability.USER_STATS))],
):
    """Account statistics (admin)."""
    result = await user_pipelines.get_stats_pipeline(
        get_user_service(),
        recent_days=get_settings().RECENT_REGISTRATION_DAYS,
    )
    return success_response(result)


@router.get("/educators")
async def list_educators():
    """Public list of active educators."""
    result = await user_pipelines.list_educators_pipeline(get_user_service())
    return success_response(result)


@router.get("/educators/{educator_id}")
async def get_educator(educator_id: str):
    """Public educator profile with published courses."""
    result = await user_pipelines.get_educator_pipeline(
        get_user_service(),
        get_course_service(),
        educator_id,
    )
    return success_response(result)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.USER_PROFILE))],
):
    """Get a user (self or admin)."""
    result = await user_pipelines.get_user_pipeline(get_user_service(), user, user_id)
    return success_response({"user": result})


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    user: Annotated[dict, Depends(require_capability(Capability.USER_PROFILE))],
):
    """Update a user (self or admin)."""
    result = await user_pipelines.update_user_pipeline(
        get_user_service(),
        user,
        user_id,
        body.model_dump(exclude_unset=True),
    )
    return success_response({"user": result}, message="User updated successfully")


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.USER_DEACTIVATE))],
):
    """Deactivate a user (admin)."""
    await user_pipelines.deactivate_user_pipeline(get_user_service(), user_id)
    logger.info(f"User {user_id} deactivated by admin {user['_id']}")
    return success_response(message="User deactivated successfully")
