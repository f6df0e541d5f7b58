"""
FastAPI router for the course catalogue, authoring and reviews.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from lms.auth import Capability
from lms.config import settings
from lms.dependencies import (
    get_course_service,
    get_enrollment_service,
    get_user_service,
    optional_auth,
    require_capability,
)
from lms.pipelines import courses as course_pipelines
from lms.schemas.course import (
    Category,
    Level,
    SortOption,
    CourseCreateRequest,
    CourseUpdateRequest,
    ReviewRequest,
)
from common.utils import success_response, paginated_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("")
async def list_courses(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.COURSES_DEFAULT_PAGE_SIZE, ge=1, le=settings.COURSES_MAX_PAGE_SIZE),
    category: Optional[Category] = None,
    level: Optional[Level] = None,
    search: Optional[str] = Query(None, max_length=200),
    sort: Optional[SortOption] = None,
):
    """Published course catalogue with filters, search and sorting."""
    courses, total = await course_pipelines.list_courses_pipeline(
        course_service=get_course_service(),
        user_service=get_user_service(),
        page=page,
        limit=limit,
        category=category,
        level=level,
        search=search.strip() if search else None,
        sort=sort,
    )
    return paginated_response(courses, "courses", total, page, limit)


@router.get("/educator/my-courses")
async def my_courses(
    user: Annotated[dict, Depends(require_capability(Capability.COURSE_LIST_OWN))],
):
    """Courses owned by the caller, including unpublished ones."""
    result = await course_pipelines.my_courses_pipeline(get_course_service(), get_user_service(), user)
    return success_response(result)


@router.get("/{course_id}")
async def get_course(
    course_id: str,
    user: Annotated[Optional[dict], Depends(optional_auth)],
):
    """
    Course detail.

    Lesson content is included for the owner and for enrolled students.
    """
    result = await course_pipelines.get_course_pipeline(
        course_service=get_course_service(),
        enrollment_service=get_enrollment_service(),
        user_service=get_user_service(),
        course_id=course_id,
        caller=user,
    )
    return success_response(result)


@router.post("", status_code=201)
async def create_course(
    body: CourseCreateRequest,
    user: Annotated[dict, Depends(require_capability(Capability.COURSE_CREATE))],
):
    """Create a course, optionally with initial lessons."""
    course = await course_pipelines.create_course_pipeline(
        course_service=get_course_service(),
        user=user,
        data=body.model_dump(exclude={"lessons"}),
        lessons=[lesson.model_dump() for lesson in body.lessons],
    )
    return success_response({"course": course}, message="Course created successfully")


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    body: CourseUpdateRequest,
    user: Annotated[dict, Depends(require_capability(Capability.COURSE_MANAGE))],
):
    """Update a course the caller owns."""
    updates = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    course = await course_pipelines.update_course_pipeline(get_course_service(), user, course_id, updates)
    return success_response({"course": course}, message="Course updated successfully")


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.COURSE_MANAGE))],
):
    """Delete a course the caller owns."""
    await course_pipelines.delete_course_pipeline(get_course_service(), user, course_id)
    return success_response(message="Course deleted successfully")


@router.post("/{course_id}/reviews", status_code=201)
async def add_review(
    course_id: str,
    body: ReviewRequest,
    user: Annotated[dict, Depends(require_capability(Capability.COURSE_REVIEW))],
):
    """Review a course the caller is enrolled in."""
    review = await course_pipelines.add_review_pipeline(
        get_course_service(),
        user,
        course_id,
        body.rating,
        body.comment,
    )
    return success_response({"review": review}, message="Review added successfully")
