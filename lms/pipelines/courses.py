"""
Course pipeline functions.

Stateless orchestration logic for the catalogue, course authoring and reviews.
Ownership is checked here, on top of the role checks done by the routers.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from common.utils.exceptions import ForbiddenException, NotFoundException
from lms.services.course import CourseService
from lms.services.enrollment import EnrollmentService
from lms.services.user import UserService

logger = logging.getLogger(__name__)


async def require_owned_course(
    course_service: CourseService,
    course_id: str,
    user: dict,
) -> dict:
    """
    Load a course the caller owns.

    Admins get no bypass: only the course's educator may change it.

    Raises:
        NotFoundException: Course not found
        ForbiddenException: Caller is not the course's educator
    """
    course = await course_service.require_course(course_id)

    if not CourseService.is_owner(course, user["_id"]):
        logger.info(f"User {user['_id']} denied modification of course {course_id}")
        raise ForbiddenException(
            message="Not authorized to modify this course",
            code="NOT_COURSE_OWNER",
        )

    return course


async def _profiles_for(user_service: UserService, courses: List[dict]) -> Dict[str, dict]:
    ids = set()
    for course in courses:
        ids.add(course.get("educatorId"))
        ids.update(review["userId"] for review in course.get("reviews", []))
    return await user_service.get_public_profiles(ids)


async def list_courses_pipeline(
    course_service: CourseService,
    user_service: UserService,
    page: int,
    limit: int,
    category: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Published catalogue page with educator summaries. Lesson content is stripped.

    Returns:
        (formatted courses, total matching count)
    """
    courses, total = await course_service.list_published(
        page=page,
        limit=limit,
        category=category,
        level=level,
        search=search,
        sort=sort,
    )
    profiles = await _profiles_for(user_service, courses)

    return [CourseService.format_course(c, profiles) for c in courses], total


async def get_course_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user_service: UserService,
    course_id: str,
    caller: Optional[dict] = None,
) -> Dict[str, Any]:
    """
    Course detail, personalised for the caller.

    Unpublished courses exist only for their owner. Lesson content is included
    for the owner and for actively enrolled students.

    Args:
        course_service: For course lookup
        enrollment_service: For the caller's enrollment
        user_service: For educator and reviewer profiles
        course_id: Course id
        caller: Authenticated user, or None for anonymous requests

    Returns:
        dict with course, isEnrolled and isOwner

    Raises:
        NotFoundException: Course not found or not visible to the caller
    """
    course = await course_service.require_course(course_id)

    is_owner = caller is not None and CourseService.is_owner(course, caller["_id"])

    if not course.get("isPublished") and not is_owner:
        raise NotFoundException(message="Course not found", code="COURSE_NOT_FOUND")

    is_enrolled = False
    if caller is not None and not is_owner:
        is_enrolled = await enrollment_service.has_active_enrollment(caller["_id"], course["_id"])

    profiles = await _profiles_for(user_service, [course])

    return {
        "course": CourseService.format_course(
            course,
            profiles,
            include_content=is_owner or is_enrolled,
            include_roster=is_owner,
        ),
        "isEnrolled": is_enrolled,
        "isOwner": is_owner,
    }


async def create_course_pipeline(
    course_service: CourseService,
    user: dict,
    data: Dict[str, Any],
    lessons: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Create a course owned by the caller.

    Raises:
        ConflictException: Initial lessons share an order
    """
    course = await course_service.create_course(user["_id"], data, lessons)
    return CourseService.format_course(course, include_content=True, include_roster=True)


async def update_course_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Partial update of a course the caller owns.

    Raises:
        NotFoundException: Course not found
        ForbiddenException: Not the owner
    """
    course = await require_owned_course(course_service, course_id, user)

    if updates:
        course = await course_service.update_course(course["_id"], updates)

    return CourseService.format_course(course, include_content=True, include_roster=True)


async def delete_course_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
) -> None:
    """
    Delete a course the caller owns. Existing enrollments are left in place.

    Raises:
        NotFoundException: Course not found
        ForbiddenException: Not the owner
    """
    course = await require_owned_course(course_service, course_id, user)
    await course_service.delete_course(course["_id"])


async def my_courses_pipeline(
    course_service: CourseService,
    user_service: UserService,
    user: dict,
) -> Dict[str, Any]:
    """All courses the caller owns, published or not, newest first."""
    courses = await course_service.list_by_educator(user["_id"])
    profiles = await _profiles_for(user_service, courses)
    return {
        "courses": [
            CourseService.format_course(c, profiles, include_content=True, include_roster=True)
            for c in courses
        ]
    }


async def add_review_pipeline(
    course_service: CourseService,
    user: dict,
    course_id: str,
    rating: int,
    comment: str,
) -> Dict[str, Any]:
    """
    Add the caller's review to a course.

    Raises:
        NotFoundException: Course not found
        ForbiddenException: Caller is not enrolled
        ConflictException: Caller already reviewed the course
    """
    review = await course_service.add_review(course_id, user["_id"], rating, comment.strip())
    return CourseService.format_review(review)
