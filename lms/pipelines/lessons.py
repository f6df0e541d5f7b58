"""
Lesson pipeline functions.

Lessons live inside their course document; every change runs through
LessonOrdering inside a versioned course save.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from common.utils.exceptions import ForbiddenException
from lms.pipelines.courses import require_owned_course
from lms.services.course import CourseService, LessonOrdering, build_lesson
from lms.services.enrollment import EnrollmentService

logger = logging.getLogger(__name__)


async def add_lesson_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Add a lesson to a course the caller owns.

    Returns:
        The new lesson

    Raises:
        NotFoundException: Course not found
        ForbiddenException: Not the owner
        ConflictException: Order already used by another lesson
    """
    course = await require_owned_course(course_service, course_id, user)
    lesson = build_lesson(data, datetime.now(timezone.utc))

    _, added = await course_service.mutate_lessons(course["_id"], lambda o: o.add(lesson))

    logger.info(f"Lesson {added['lessonId']} added to course {course_id} at order {added['order']}")
    return CourseService.format_lesson(added)


async def update_lesson_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    lesson_id: str,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Update a lesson's fields, moving it if its order changed.

    Raises:
        NotFoundException: Course or lesson not found
        ForbiddenException: Not the owner
        ConflictException: New order already used by another lesson
    """
    course = await require_owned_course(course_service, course_id, user)
    changes = {**changes, "updatedAt": datetime.now(timezone.utc)}

    _, updated = await course_service.mutate_lessons(
        course["_id"],
        lambda o: o.update(lesson_id, changes),
    )

    logger.info(f"Lesson {lesson_id} updated in course {course_id}")
    return CourseService.format_lesson(updated)


async def delete_lesson_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    lesson_id: str,
) -> None:
    """
    Delete a lesson; remaining lessons are renumbered 1..n.

    Raises:
        NotFoundException: Course or lesson not found
        ForbiddenException: Not the owner
    """
    course = await require_owned_course(course_service, course_id, user)
    await course_service.mutate_lessons(course["_id"], lambda o: o.remove(lesson_id))
    logger.info(f"Lesson {lesson_id} deleted from course {course_id}")


async def reorder_lessons_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    lesson_ids: List[str],
) -> List[Dict[str, Any]]:
    """
    Apply a new lesson order given as a full permutation of lesson ids.

    Raises:
        NotFoundException: Course not found
        ForbiddenException: Not the owner
        ValidationException: Unknown, repeated or missing lesson ids
    """
    course = await require_owned_course(course_service, course_id, user)
    _, lessons = await course_service.mutate_lessons(course["_id"], lambda o: o.reorder(lesson_ids))

    logger.info(f"Lessons reordered in course {course_id}")
    return [CourseService.format_lesson(lesson) for lesson in lessons]


async def toggle_lesson_publish_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    lesson_id: str,
) -> Dict[str, Any]:
    """
    Flip a lesson's published flag.

    Raises:
        NotFoundException: Course or lesson not found
        ForbiddenException: Not the owner
    """
    course = await require_owned_course(course_service, course_id, user)
    _, lesson = await course_service.mutate_lessons(
        course["_id"],
        lambda o: o.toggle_publish(lesson_id),
    )
    return CourseService.format_lesson(lesson)


async def get_lesson_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user: dict,
    course_id: str,
    lesson_id: str,
) -> Dict[str, Any]:
    """
    Full lesson content for the course owner or an actively enrolled student.

    Raises:
        NotFoundException: Course or lesson not found
        ForbiddenException: Neither owner nor enrolled
    """
    course = await course_service.require_course(course_id)
    lesson = LessonOrdering(course.get("lessons", [])).get(lesson_id)

    if not CourseService.is_owner(course, user["_id"]):
        if not await enrollment_service.has_active_enrollment(user["_id"], course["_id"]):
            raise ForbiddenException(
                message="You must be enrolled in this course to access lessons",
                code="NOT_ENROLLED",
            )

    return CourseService.format_lesson(lesson)
