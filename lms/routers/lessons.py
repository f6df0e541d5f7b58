"""
FastAPI router for lesson authoring and lesson access.

The reorder route is declared before the /{course_id}/{lesson_id} routes so
"reorder" is never captured as a lesson id.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from lms.auth import Capability
from lms.dependencies import (
    get_course_service,
    get_enrollment_service,
    require_capability,
)
from lms.pipelines import lessons as lesson_pipelines
from lms.schemas.lesson import (
    LessonCreateRequest,
    LessonUpdateRequest,
    ReorderLessonsRequest,
)
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.post("/{course_id}", status_code=201)
async def add_lesson(
    course_id: str,
    body: LessonCreateRequest,
    user: Annotated[dict, Depends(require_capability(Capability.LESSON_MANAGE))],
):
    """Add a lesson to a course the caller owns."""
    lesson = await lesson_pipelines.add_lesson_pipeline(
        get_course_service(),
        user,
        course_id,
        body.model_dump(),
    )
    return success_response({"lesson": lesson}, message="Lesson added successfully")


@router.put("/{course_id}/reorder")
async def reorder_lessons(
    course_id: str,
    body: ReorderLessonsRequest,
    user: Annotated[dict, Depends(require_capability(Capability.LESSON_MANAGE))],
):
    """Reorder all lessons of a course."""
    lessons = await lesson_pipelines.reorder_lessons_pipeline(
        get_course_service(),
        user,
        course_id,
        body.lessonIds,
    )
    return success_response({"lessons": lessons}, message="Lessons reordered successfully")


@router.put("/{course_id}/{lesson_id}/publish")
async def toggle_publish(
    course_id: str,
    lesson_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.LESSON_MANAGE))],
):
    """Publish or unpublish a lesson."""
    lesson = await lesson_pipelines.toggle_lesson_publish_pipeline(
        get_course_service(),
        user,
        course_id,
        lesson_id,
    )
    state = "published" if lesson["isPublished"] else "unpublished"
    return success_response({"lesson": lesson}, message=f"Lesson {state} successfully")


@router.put("/{course_id}/{lesson_id}")
async def update_lesson(
    course_id: str,
    lesson_id: str,
    body: LessonUpdateRequest,
    user: Annotated[dict, Depends(require_capability(Capability.LESSON_MANAGE))],
):
    """Update a lesson."""
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    lesson = await lesson_pipelines.update_lesson_pipeline(
        get_course_service(),
        user,
        course_id,
        lesson_id,
        changes,
    )
    return success_response({"lesson": lesson}, message="Lesson updated successfully")


@router.delete("/{course_id}/{lesson_id}")
async def delete_lesson(
    course_id: str,
    lesson_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.LESSON_MANAGE))],
):
    """Delete a lesson; the rest are renumbered."""
    await lesson_pipelines.delete_lesson_pipeline(get_course_service(), user, course_id, lesson_id)
    return success_response(message="Lesson deleted successfully")


@router.get("/{course_id}/{lesson_id}")
async def get_lesson(
    course_id: str,
    lesson_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.LESSON_VIEW))],
):
    """Lesson content for the owner or an enrolled student."""
    lesson = await lesson_pipelines.get_lesson_pipeline(
        get_course_service(),
        get_enrollment_service(),
        user,
        course_id,
        lesson_id,
    )
    return success_response({"lesson": lesson})
