"""
Enrollment service.

Owns the enrollments collection: creation, lookup by owner, lesson
completion, notes, quiz scores and (de)activation. Progress is recomputed by
the pure calculator on every change to completedLessons.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Callable

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.database import mutate_versioned
from common.utils.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from lms.database import ENROLLMENTS, to_object_id, new_id
from lms.services.progress import (
    apply_progress,
    average_quiz_score,
    is_completed,
    touch,
)

logger = logging.getLogger(__name__)


class EnrollmentService:
    """
    Manages enrollment documents.

    Every lookup that acts on behalf of a student is scoped to that student,
    so someone else's enrollment id behaves exactly like an unknown one.
    """

    def __init__(self, db: AsyncIOMotorDatabase, retry_limit: int = 3):
        """
        Initialize EnrollmentService.

        Args:
            db: MongoDB database connection
            retry_limit: Attempts per versioned save before reporting a conflict
        """
        self._db = db
        self._enrollments_collection = db[ENROLLMENTS]
        self._retry_limit = retry_limit

    # ─────────────────────────────────────────────────────────────
    # Create / delete
    # ─────────────────────────────────────────────────────────────

    async def create_enrollment(self, student_id: Any, course_id: Any) -> dict:
        """
        Insert a new active enrollment.

        Args:
            student_id: Enrolling student
            course_id: Target course

        Returns:
            Created enrollment document

        Raises:
            ConflictException: An enrollment already exists for the pair
        """
        now = datetime.now(timezone.utc)

        enrollment_doc = {
            "studentId": to_object_id(student_id),
            "courseId": to_object_id(course_id),
            "enrolledAt": now,
            "completedAt": None,
            "progress": 0,
            "completedLessons": [],
            "notes": [],
            "quizScores": [],
            "isActive": True,
            "lastAccessed": now,
            "totalTimeSpent": 0,
            "version": 0,
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._enrollments_collection.insert_one(enrollment_doc)
        except DuplicateKeyError:
            logger.info(f"Duplicate enrollment rejected by index: student={student_id} course={course_id}")
            raise ConflictException(
                message="You are already enrolled in this course",
                code="ALREADY_ENROLLED",
            )

        enrollment_doc["_id"] = result.inserted_id
        logger.info(f"Enrollment created: {result.inserted_id} student={student_id} course={course_id}")
        return enrollment_doc

    async def delete_enrollment(self, enrollment_id: Any) -> bool:
        """
        Remove an enrollment document outright.

        Only used to retract an enrollment whose course update failed.

        Returns:
            True if a document was deleted
        """
        result = await self._enrollments_collection.delete_one({"_id": to_object_id(enrollment_id)})
        return result.deleted_count > 0

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def find_for_pair(self, student_id: Any, course_id: Any) -> Optional[dict]:
        """Enrollment for a (student, course) pair, active or not."""
        return await self._enrollments_collection.find_one({
            "studentId": to_object_id(student_id),
            "courseId": to_object_id(course_id),
        })

    async def has_active_enrollment(self, student_id: Any, course_id: Any) -> bool:
        """Check whether the student is actively enrolled in the course."""
        enrollment = await self.find_for_pair(student_id, course_id)
        return bool(enrollment and enrollment.get("isActive"))

    async def get_owned(self, enrollment_id: Any, student_id: Any) -> dict:
        """
        Load an enrollment belonging to the student.

        Raises:
            NotFoundException: Unknown id, malformed id, or owned by someone else
        """
        oid = to_object_id(enrollment_id)
        enrollment = None
        if oid is not None:
            enrollment = await self._enrollments_collection.find_one({
                "_id": oid,
                "studentId": to_object_id(student_id),
            })

        if not enrollment:
            raise NotFoundException(message="Enrollment not found", code="ENROLLMENT_NOT_FOUND")
        return enrollment

    async def list_active_for_student(self, student_id: Any) -> List[dict]:
        """Active enrollments of a student, most recent first."""
        cursor = self._enrollments_collection.find({
            "studentId": to_object_id(student_id),
            "isActive": True,
        }).sort("enrolledAt", -1)
        return await cursor.to_list(length=None)

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    async def complete_lesson(
        self,
        enrollment_id: Any,
        student_id: Any,
        lesson_id: str,
        time_spent: int,
        total_lessons: int,
    ) -> dict:
        """
        Mark a lesson complete and recompute progress.

        Args:
            enrollment_id: Enrollment id
            student_id: Owning student
            lesson_id: Lesson being completed (already checked against the course)
            time_spent: Minutes spent on the lesson
            total_lessons: Current lesson count of the course

        Returns:
            Saved enrollment document

        Raises:
            NotFoundException: Enrollment not found
            InvalidStateException: Enrollment was cancelled
            ConflictException: Lesson already completed
        """
        def apply(enrollment: dict) -> None:
            if any(c["lessonId"] == lesson_id for c in enrollment.get("completedLessons", [])):
                raise ConflictException(
                    message="Lesson is already completed",
                    code="LESSON_ALREADY_COMPLETED",
                )

            now = datetime.now(timezone.utc)
            enrollment.setdefault("completedLessons", []).append({
                "lessonId": lesson_id,
                "completedAt": now,
                "timeSpent": time_spent,
            })
            enrollment["totalTimeSpent"] = enrollment.get("totalTimeSpent", 0) + time_spent
            apply_progress(enrollment, total_lessons, now)

        enrollment = await self._mutate(enrollment_id, student_id, apply)
        logger.info(
            f"Lesson {lesson_id} completed on enrollment {enrollment_id}, progress {enrollment['progress']}%"
        )
        return enrollment

    async def add_note(
        self,
        enrollment_id: Any,
        student_id: Any,
        lesson_id: str,
        content: str,
    ) -> dict:
        """
        Append a note for a lesson.

        Returns:
            The stored note

        Raises:
            ValidationException: Content is blank after trimming
        """
        content = (content or "").strip()
        if not content:
            raise ValidationException(
                message="Note content cannot be empty",
                errors=[{"field": "content", "message": "Note content cannot be empty"}],
            )

        now = datetime.now(timezone.utc)
        note = {
            "noteId": new_id(),
            "lessonId": lesson_id,
            "content": content,
            "createdAt": now,
        }

        def apply(enrollment: dict) -> None:
            enrollment.setdefault("notes", []).append(note)
            touch(enrollment, now)

        await self._mutate(enrollment_id, student_id, apply)
        logger.debug(f"Note added to enrollment {enrollment_id} for lesson {lesson_id}")
        return note

    async def add_quiz_score(
        self,
        enrollment_id: Any,
        student_id: Any,
        lesson_id: str,
        score: int,
        total_questions: int,
        correct_answers: int,
    ) -> dict:
        """
        Record a quiz result. Does not affect progress.

        Returns:
            The stored quiz score

        Raises:
            ValidationException: Score out of range or more correct answers than questions
        """
        errors = []
        if not 0 <= score <= 100:
            errors.append({"field": "score", "message": "Score must be between 0 and 100"})
        if correct_answers > total_questions:
            errors.append({
                "field": "correctAnswers",
                "message": "Correct answers cannot exceed total questions",
            })
        if errors:
            raise ValidationException(message="Invalid quiz score", errors=errors)

        now = datetime.now(timezone.utc)
        quiz = {
            "lessonId": lesson_id,
            "score": score,
            "totalQuestions": total_questions,
            "correctAnswers": correct_answers,
            "completedAt": now,
        }

        def apply(enrollment: dict) -> None:
            enrollment.setdefault("quizScores", []).append(quiz)
            touch(enrollment, now)

        await self._mutate(enrollment_id, student_id, apply)
        logger.debug(f"Quiz score {score} recorded on enrollment {enrollment_id} for lesson {lesson_id}")
        return quiz

    async def set_active(self, enrollment_id: Any, student_id: Any, active: bool) -> dict:
        """
        Activate or deactivate an enrollment.

        Deactivation is the cancellation soft delete; history is kept.

        Raises:
            NotFoundException: Enrollment not found
            InvalidStateException: Enrollment already in the requested state
        """
        def apply(enrollment: dict) -> None:
            if enrollment.get("isActive", True) == active:
                raise InvalidStateException(
                    message="Enrollment is already active" if active else "Enrollment is already cancelled",
                )
            enrollment["isActive"] = active
            touch(enrollment, datetime.now(timezone.utc))

        enrollment = await self._mutate(enrollment_id, student_id, apply, require_active=False)
        logger.info(f"Enrollment {enrollment_id} {'reactivated' if active else 'deactivated'}")
        return enrollment

    async def _mutate(
        self,
        enrollment_id: Any,
        student_id: Any,
        apply: Callable[[dict], None],
        require_active: bool = True,
    ) -> dict:
        oid = to_object_id(enrollment_id)

        def guarded(enrollment: dict) -> None:
            if require_active and not enrollment.get("isActive", True):
                raise InvalidStateException(
                    message="Enrollment has been cancelled",
                    code="ENROLLMENT_CANCELLED",
                )
            apply(enrollment)

        enrollment = None
        if oid is not None:
            enrollment = await mutate_versioned(
                self._enrollments_collection,
                {"_id": oid, "studentId": to_object_id(student_id)},
                guarded,
                retries=self._retry_limit,
            )
        if enrollment is None:
            raise NotFoundException(message="Enrollment not found", code="ENROLLMENT_NOT_FOUND")
        return enrollment

    # ─────────────────────────────────────────────────────────────
    # Formatting
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def format_note(note: dict) -> Dict[str, Any]:
        return {
            "id": note["noteId"],
            "lessonId": note["lessonId"],
            "content": note["content"],
            "createdAt": note.get("createdAt"),
        }

    @staticmethod
    def format_quiz_score(quiz: dict) -> Dict[str, Any]:
        return {
            "lessonId": quiz["lessonId"],
            "score": quiz["score"],
            "totalQuestions": quiz["totalQuestions"],
            "correctAnswers": quiz["correctAnswers"],
            "completedAt": quiz.get("completedAt"),
        }

    @classmethod
    def format_enrollment(cls, enrollment: dict, course: Optional[dict] = None) -> Dict[str, Any]:
        """
        Convert an enrollment document to its API shape.

        Args:
            enrollment: Enrollment document
            course: Optional course summary to embed
        """
        return {
            "id": str(enrollment["_id"]),
            "studentId": str(enrollment["studentId"]),
            "courseId": str(enrollment["courseId"]),
            "course": course,
            "enrolledAt": enrollment.get("enrolledAt"),
            "completedAt": enrollment.get("completedAt"),
            "progress": enrollment.get("progress", 0),
            "isCompleted": is_completed(enrollment),
            "completedLessons": [
                {
                    "lessonId": c["lessonId"],
                    "completedAt": c.get("completedAt"),
                    "timeSpent": c.get("timeSpent", 0),
                }
                for c in enrollment.get("completedLessons", [])
            ],
            "notes": [cls.format_note(n) for n in enrollment.get("notes", [])],
            "quizScores": [cls.format_quiz_score(q) for q in enrollment.get("quizScores", [])],
            "isActive": enrollment.get("isActive", True),
            "lastAccessed": enrollment.get("lastAccessed"),
            "totalTimeSpent": enrollment.get("totalTimeSpent", 0),
        }

    @staticmethod
    def progress_snapshot(enrollment: dict, course: Optional[dict]) -> Dict[str, Any]:
        """
        Progress summary of an enrollment against its course.

        Args:
            enrollment: Enrollment document
            course: Course document, or None if it was deleted
        """
        course = course or {}
        return {
            "enrollmentId": str(enrollment["_id"]),
            "courseId": str(enrollment["courseId"]),
            "courseTitle": course.get("title"),
            "totalLessons": course.get("totalLessons", 0),
            "completedLessons": len(enrollment.get("completedLessons", [])),
            "progress": enrollment.get("progress", 0),
            "totalTimeSpent": enrollment.get("totalTimeSpent", 0),
            "isCompleted": is_completed(enrollment),
            "averageQuizScore": average_quiz_score(enrollment.get("quizScores", [])),
            "enrolledAt": enrollment.get("enrolledAt"),
            "completedAt": enrollment.get("completedAt"),
            "lastAccessed": enrollment.get("lastAccessed"),
        }
