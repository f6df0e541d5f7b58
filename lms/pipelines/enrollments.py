"""
Enrollment pipeline functions.

Enrolling and cancelling touch two aggregates (the enrollment and the course
roster) without a transaction. Both run as a saga: the enrollment write goes
first, the course write second, and a failed course write is compensated by
undoing the enrollment write.
"""

import logging
from typing import Any, Dict, List, Optional

from common.utils.exceptions import (
    ConflictException,
    InternalServerException,
    InvalidStateException,
    NotFoundException,
)
from lms.services.course import CourseService, LessonOrdering
from lms.services.enrollment import EnrollmentService
from lms.services.user import UserService

logger = logging.getLogger(__name__)


def _course_summary(course: Optional[dict], profiles: Optional[Dict[str, dict]] = None) -> Optional[Dict[str, Any]]:
    if not course:
        return None
    profiles = profiles or {}
    return CourseService.format_summary(course, profiles.get(str(course.get("educatorId"))))


async def enroll_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user: dict,
    course_id: str,
) -> Dict[str, Any]:
    """
    Enroll the caller in a published course.

    Args:
        course_service: For the course and its roster
        enrollment_service: For the enrollment record
        user: Authenticated student
        course_id: Course to enroll in

    Returns:
        Formatted enrollment with course summary

    Raises:
        NotFoundException: Course not found
        InvalidStateException: Course not published
        ConflictException: Already enrolled
        InternalServerException: Course update failed; the enrollment was retracted
    """
    course = await course_service.require_course(course_id)

    if not course.get("isPublished"):
        raise InvalidStateException(
            message="Course is not available for enrollment",
            code="COURSE_NOT_PUBLISHED",
        )

    student_id = user["_id"]

    # Fast path; the unique (student, course) index has the final word
    if await enrollment_service.find_for_pair(student_id, course["_id"]):
        raise ConflictException(
            message="You are already enrolled in this course",
            code="ALREADY_ENROLLED",
        )

    enrollment = await enrollment_service.create_enrollment(student_id, course["_id"])

    try:
        course = await course_service.add_to_roster(course["_id"], student_id, enrollment["enrolledAt"])
    except Exception as e:
        logger.warning(
            f"Roster update failed for course {course_id}, retracting enrollment {enrollment['_id']}: {e}"
        )
        await enrollment_service.delete_enrollment(enrollment["_id"])
        raise InternalServerException(
            message="Enrollment could not be completed, please try again",
            code="ENROLLMENT_FAILED",
        ) from e

    logger.info(f"Student {student_id} enrolled in course {course_id}")
    return EnrollmentService.format_enrollment(enrollment, _course_summary(course))


async def my_enrollments_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user_service: UserService,
    user: dict,
) -> Dict[str, Any]:
    """Caller's active enrollments, newest first, with course summaries."""
    enrollments = await enrollment_service.list_active_for_student(user["_id"])
    courses = await course_service.get_courses_by_ids([e["courseId"] for e in enrollments])
    profiles = await user_service.get_public_profiles(c.get("educatorId") for c in courses.values())

    return {
        "enrollments": [
            EnrollmentService.format_enrollment(
                e, _course_summary(courses.get(str(e["courseId"])), profiles)
            )
            for e in enrollments
        ]
    }


async def get_enrollment_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user_service: UserService,
    user: dict,
    enrollment_id: str,
) -> Dict[str, Any]:
    """
    One of the caller's enrollments with its course and lesson outline.

    Raises:
        NotFoundException: Enrollment not found or owned by someone else
    """
    enrollment = await enrollment_service.get_owned(enrollment_id, user["_id"])
    course = await course_service.get_course(enrollment["courseId"])

    summary = None
    if course:
        profiles = await user_service.get_public_profiles([course.get("educatorId")])
        summary = _course_summary(course, profiles)
        summary["lessons"] = [
            CourseService.format_lesson(lesson, include_content=False)
            for lesson in course.get("lessons", [])
        ]

    return EnrollmentService.format_enrollment(enrollment, summary)


async def complete_lesson_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user: dict,
    enrollment_id: str,
    lesson_id: str,
    time_spent: int = 0,
) -> Dict[str, Any]:
    """
    Mark a lesson of the enrolled course as completed.

    Progress is mirrored into the course roster on a best-effort basis.

    Raises:
        NotFoundException: Enrollment, course or lesson not found
        InvalidStateException: Enrollment was cancelled
        ConflictException: Lesson already completed
    """
    enrollment = await enrollment_service.get_owned(enrollment_id, user["_id"])
    course = await course_service.require_course(enrollment["courseId"])

    lessons = LessonOrdering(course.get("lessons", []))
    if lesson_id not in lessons:
        raise NotFoundException(message="Lesson not found in this course", code="LESSON_NOT_FOUND")

    enrollment = await enrollment_service.complete_lesson(
        enrollment["_id"],
        user["_id"],
        lesson_id,
        time_spent,
        total_lessons=len(lessons),
    )

    try:
        await course_service.update_roster_progress(
            course["_id"],
            user["_id"],
            enrollment["progress"],
            [c["lessonId"] for c in enrollment.get("completedLessons", [])],
        )
    except Exception as e:
        logger.warning(f"Could not mirror progress of enrollment {enrollment_id} into course {course['_id']}: {e}")

    return EnrollmentService.format_enrollment(enrollment)


async def add_note_pipeline(
    enrollment_service: EnrollmentService,
    user: dict,
    enrollment_id: str,
    lesson_id: str,
    content: str,
) -> Dict[str, Any]:
    """
    Append a note to one of the caller's enrollments.

    Raises:
        NotFoundException: Enrollment not found
        ValidationException: Blank content
    """
    note = await enrollment_service.add_note(enrollment_id, user["_id"], lesson_id, content)
    return EnrollmentService.format_note(note)


async def get_notes_pipeline(
    enrollment_service: EnrollmentService,
    user: dict,
    enrollment_id: str,
    lesson_id: str,
) -> List[Dict[str, Any]]:
    """Notes for one lesson in the order they were written."""
    enrollment = await enrollment_service.get_owned(enrollment_id, user["_id"])
    return [
        EnrollmentService.format_note(note)
        for note in enrollment.get("notes", [])
        if note["lessonId"] == lesson_id
    ]


async def record_quiz_score_pipeline(
    enrollment_service: EnrollmentService,
    user: dict,
    enrollment_id: str,
    lesson_id: str,
    score: int,
    total_questions: int,
    correct_answers: int,
) -> Dict[str, Any]:
    """
    Record a quiz result on one of the caller's enrollments.

    Raises:
        NotFoundException: Enrollment not found
        ValidationException: Score or answer counts out of range
    """
    quiz = await enrollment_service.add_quiz_score(
        enrollment_id,
        user["_id"],
        lesson_id,
        score,
        total_questions,
        correct_answers,
    )
    return EnrollmentService.format_quiz_score(quiz)


async def progress_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user: dict,
    enrollment_id: str,
) -> Dict[str, Any]:
    """Progress snapshot of one of the caller's enrollments."""
    enrollment = await enrollment_service.get_owned(enrollment_id, user["_id"])
    course = await course_service.get_course(enrollment["courseId"])
    return {"progress": EnrollmentService.progress_snapshot(enrollment, course)}


async def cancel_enrollment_pipeline(
    course_service: CourseService,
    enrollment_service: EnrollmentService,
    user: dict,
    enrollment_id: str,
) -> None:
    """
    Cancel one of the caller's enrollments.

    The enrollment is deactivated, then the student leaves the course roster.
    If the roster update fails the enrollment is reactivated.

    Raises:
        NotFoundException: Enrollment not found
        InvalidStateException: Already cancelled
        InternalServerException: Course update failed; the cancellation was undone
    """
    enrollment = await enrollment_service.set_active(enrollment_id, user["_id"], False)

    try:
        await course_service.remove_from_roster(enrollment["courseId"], user["_id"])
    except Exception as e:
        logger.warning(
            f"Roster removal failed for course {enrollment['courseId']}, reactivating enrollment {enrollment_id}: {e}"
        )
        await enrollment_service.set_active(enrollment_id, user["_id"], True)
        raise InternalServerException(
            message="Enrollment could not be cancelled, please try again",
            code="CANCELLATION_FAILED",
        ) from e

    logger.info(f"Enrollment {enrollment_id} cancelled by {user['_id']}")
