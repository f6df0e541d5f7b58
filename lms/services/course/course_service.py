"""
Course aggregate service.

Owns the courses collection: catalogue queries, course CRUD, reviews, the
embedded lesson list and the enrolled-student roster. Every read-modify-write
goes through a versioned save so concurrent edits are retried instead of
overwriting each other, and derived fields (lesson totals, rating) are
recomputed before each save.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Callable, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import mutate_versioned
from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from lms.database import COURSES, to_object_id, new_id
from lms.services.course.lesson_ordering import LessonOrdering
from lms.services.progress import apply_course_totals, apply_course_rating

logger = logging.getLogger(__name__)

CATEGORIES = (
    "programming",
    "design",
    "business",
    "marketing",
    "music",
    "photography",
    "health",
    "fitness",
    "cooking",
    "language",
    "other",
)

LEVELS = ("beginner", "intermediate", "advanced")

SORT_OPTIONS = {
    "newest": [("createdAt", -1)],
    "oldest": [("createdAt", 1)],
    "price-low": [("price", 1)],
    "price-high": [("price", -1)],
    "rating": [("rating", -1)],
}

DEFAULT_SORT = "newest"


def build_lesson(data: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """
    Create an embedded lesson document from validated input.

    Args:
        data: Lesson fields (title, description, content, order, ...)
        now: Creation timestamp

    Returns:
        Lesson document with a fresh lessonId
    """
    return {
        "lessonId": new_id(),
        "title": data["title"],
        "description": data["description"],
        "content": data["content"],
        "videoUrl": data.get("videoUrl") or "",
        "duration": data.get("duration") or 0,
        "order": data["order"],
        "isPublished": data.get("isPublished", False),
        "resources": data.get("resources") or [],
        "createdAt": now,
        "updatedAt": now,
    }


class CourseService:
    """
    Manages course documents and their embedded lessons, roster and reviews.
    """

    def __init__(self, db: AsyncIOMotorDatabase, retry_limit: int = 3):
        """
        Initialize CourseService.

        Args:
            db: MongoDB database connection
            retry_limit: Attempts per versioned save before reporting a conflict
        """
        self._db = db
        self._courses_collection = db[COURSES]
        self._retry_limit = retry_limit

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def get_course(self, course_id: Any) -> Optional[dict]:
        """
        Load a course by id.

        Returns:
            Course document or None if not found or the id is malformed
        """
        oid = to_object_id(course_id)
        if oid is None:
            return None
        return await self._courses_collection.find_one({"_id": oid})

    async def require_course(self, course_id: Any) -> dict:
        """
        Load a course or fail.

        Raises:
            NotFoundException: Course does not exist
        """
        course = await self.get_course(course_id)
        if not course:
            raise NotFoundException(message="Course not found", code="COURSE_NOT_FOUND")
        return course

    async def get_courses_by_ids(self, course_ids: List[Any]) -> Dict[str, dict]:
        """
        Load several courses at once.

        Returns:
            Dict mapping id string to course document; missing ids are absent
        """
        oids = list({oid for oid in (to_object_id(c) for c in course_ids) if oid is not None})
        if not oids:
            return {}

        cursor = self._courses_collection.find({"_id": {"$in": oids}})
        courses = await cursor.to_list(length=len(oids))
        return {str(course["_id"]): course for course in courses}

    async def list_published(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        level: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        """
        Catalogue listing of published courses.

        Args:
            page: 1-indexed page number
            limit: Page size
            category: Exact category filter
            level: Exact level filter
            search: Full-text query over title, description and tags
            sort: One of SORT_OPTIONS (default newest)

        Returns:
            (courses on this page, total matching count)
        """
        query: Dict[str, Any] = {"isPublished": True}

        if category:
            query["category"] = category

        if level:
            query["level"] = level

        if search:
            query["$text"] = {"$search": search}

        sort_spec = SORT_OPTIONS.get(sort or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT])

        cursor = (
            self._courses_collection.find(query)
            .sort(sort_spec)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        courses = await cursor.to_list(length=limit)
        total = await self._courses_collection.count_documents(query)

        logger.debug(f"Course listing page={page} limit={limit} total={total}")
        return courses, total

    async def list_by_educator(self, educator_id: Any, published_only: bool = False) -> List[dict]:
        """Courses owned by an educator, newest first."""
        query: Dict[str, Any] = {"educatorId": to_object_id(educator_id)}
        if published_only:
            query["isPublished"] = True

        cursor = self._courses_collection.find(query).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    # ─────────────────────────────────────────────────────────────
    # Course CRUD
    # ─────────────────────────────────────────────────────────────

    async def create_course(
        self,
        educator_id: Any,
        data: Dict[str, Any],
        lessons: Optional[List[Dict[str, Any]]] = None,
    ) -> dict:
        """
        Create a course owned by the educator.

        Args:
            educator_id: Owner's user id
            data: Validated course fields
            lessons: Optional initial lessons

        Returns:
            Created course document

        Raises:
            ConflictException: Two initial lessons share an order
        """
        now = datetime.now(timezone.utc)

        ordering = LessonOrdering()
        for lesson in lessons or []:
            ordering.add(build_lesson(lesson, now))

        course_doc = {
            "title": data["title"],
            "description": data["description"],
            "shortDescription": data.get("shortDescription") or "",
            "educatorId": to_object_id(educator_id),
            "category": data["category"],
            "level": data["level"],
            "price": data["price"],
            "originalPrice": data.get("originalPrice"),
            "thumbnail": data.get("thumbnail") or "",
            "tags": data.get("tags") or [],
            "requirements": data.get("requirements") or [],
            "learningOutcomes": data.get("learningOutcomes") or [],
            "language": data.get("language") or "English",
            "certificate": data.get("certificate", True),
            "isPublished": data.get("isPublished", False),
            "isFeatured": data.get("isFeatured", False),
            "lessons": ordering.to_list(),
            "enrolledStudents": [],
            "totalEnrollments": 0,
            "reviews": [],
            "rating": 0,
            "numReviews": 0,
            "version": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        apply_course_totals(course_doc)

        result = await self._courses_collection.insert_one(course_doc)
        course_doc["_id"] = result.inserted_id

        logger.info(f"Course created: {result.inserted_id} by educator {educator_id}")
        return course_doc

    async def update_course(self, course_id: Any, updates: Dict[str, Any]) -> dict:
        """
        Apply a partial update to a course's descriptive fields.

        Raises:
            NotFoundException: Course does not exist
        """
        def apply(course: dict) -> None:
            course.update(updates)
            apply_course_totals(course)

        course = await self._mutate(course_id, apply)
        logger.info(f"Course {course_id} updated: {sorted(updates)}")
        return course

    async def delete_course(self, course_id: Any) -> bool:
        """
        Delete a course document.

        Returns:
            True if a course was deleted
        """
        result = await self._courses_collection.delete_one({"_id": to_object_id(course_id)})
        if result.deleted_count:
            logger.info(f"Course deleted: {course_id}")
        return result.deleted_count > 0

    # ─────────────────────────────────────────────────────────────
    # Reviews
    # ─────────────────────────────────────────────────────────────

    async def add_review(
        self,
        course_id: Any,
        user_id: Any,
        rating: int,
        comment: str,
    ) -> dict:
        """
        Add a review and recompute the course rating.

        Args:
            course_id: Course being reviewed
            user_id: Reviewer, must be on the course roster
            rating: 1..5
            comment: Review text

        Returns:
            The stored review

        Raises:
            NotFoundException: Course does not exist
            ForbiddenException: Reviewer is not enrolled
            ConflictException: Reviewer already reviewed this course
        """
        review = {
            "userId": to_object_id(user_id),
            "rating": rating,
            "comment": comment,
            "createdAt": datetime.now(timezone.utc),
        }

        def apply(course: dict) -> None:
            if not self.is_on_roster(course, user_id):
                raise ForbiddenException(
                    message="You must be enrolled in this course to leave a review",
                    code="NOT_ENROLLED",
                )

            if any(str(r["userId"]) == str(user_id) for r in course.get("reviews", [])):
                raise ConflictException(
                    message="You have already reviewed this course",
                    code="ALREADY_REVIEWED",
                )

            course.setdefault("reviews", []).append(review)
            apply_course_rating(course)

        course = await self._mutate(course_id, apply)
        logger.info(f"Review added to course {course_id} by {user_id}, rating now {course['rating']:.2f}")
        return review

    # ─────────────────────────────────────────────────────────────
    # Lessons
    # ─────────────────────────────────────────────────────────────

    async def mutate_lessons(
        self,
        course_id: Any,
        operation: Callable[[LessonOrdering], Any],
    ) -> Tuple[dict, Any]:
        """
        Run an operation against the course's lesson ordering and save it.

        Lesson totals are recomputed before the save.

        Args:
            course_id: Course id
            operation: Receives a LessonOrdering; its return value is passed back

        Returns:
            (saved course document, operation result)

        Raises:
            NotFoundException: Course does not exist
        """
        outcome: Dict[str, Any] = {}

        def apply(course: dict) -> None:
            ordering = LessonOrdering(course.get("lessons", []))
            outcome["result"] = operation(ordering)
            course["lessons"] = ordering.to_list()
            apply_course_totals(course)

        course = await self._mutate(course_id, apply)
        return course, outcome.get("result")

    # ─────────────────────────────────────────────────────────────
    # Roster
    # ─────────────────────────────────────────────────────────────

    async def add_to_roster(self, course_id: Any, student_id: Any, enrolled_at: datetime) -> dict:
        """
        Append a student to the roster and bump totalEnrollments.

        A student already on the roster is left as is.

        Raises:
            NotFoundException: Course does not exist
        """
        def apply(course: dict) -> None:
            if self.is_on_roster(course, student_id):
                return
            course.setdefault("enrolledStudents", []).append({
                "studentId": to_object_id(student_id),
                "enrolledAt": enrolled_at,
                "progress": 0,
                "completedLessonIds": [],
            })
            course["totalEnrollments"] = course.get("totalEnrollments", 0) + 1

        course = await self._mutate(course_id, apply)
        logger.info(f"Student {student_id} added to roster of course {course_id}")
        return course

    async def remove_from_roster(self, course_id: Any, student_id: Any) -> Optional[dict]:
        """
        Remove a student from the roster and decrement totalEnrollments (never below 0).

        Returns:
            Saved course document, or None if the course no longer exists
        """
        def apply(course: dict) -> None:
            roster = course.get("enrolledStudents", [])
            remaining = [s for s in roster if str(s["studentId"]) != str(student_id)]
            if len(remaining) == len(roster):
                return
            course["enrolledStudents"] = remaining
            course["totalEnrollments"] = max(0, course.get("totalEnrollments", 0) - 1)

        try:
            course = await self._mutate(course_id, apply)
        except NotFoundException:
            logger.warning(f"Course {course_id} gone while removing student {student_id} from roster")
            return None

        logger.info(f"Student {student_id} removed from roster of course {course_id}")
        return course

    async def update_roster_progress(
        self,
        course_id: Any,
        student_id: Any,
        progress: int,
        completed_lesson_ids: List[str],
    ) -> None:
        """Mirror an enrollment's progress into the student's roster entry."""
        def apply(course: dict) -> None:
            for entry in course.get("enrolledStudents", []):
                if str(entry["studentId"]) == str(student_id):
                    entry["progress"] = progress
                    entry["completedLessonIds"] = list(completed_lesson_ids)

        await self._mutate(course_id, apply)

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    async def _mutate(self, course_id: Any, apply: Callable[[dict], None]) -> dict:
        oid = to_object_id(course_id)
        course = None
        if oid is not None:
            course = await mutate_versioned(
                self._courses_collection,
                {"_id": oid},
                apply,
                retries=self._retry_limit,
            )
        if course is None:
            raise NotFoundException(message="Course not found", code="COURSE_NOT_FOUND")
        return course

    @staticmethod
    def is_owner(course: dict, user_id: Any) -> bool:
        """Check whether the user is the course's educator."""
        return str(course.get("educatorId")) == str(user_id)

    @staticmethod
    def is_on_roster(course: dict, user_id: Any) -> bool:
        """Check whether the user appears in the enrolled-student roster."""
        return any(str(s["studentId"]) == str(user_id) for s in course.get("enrolledStudents", []))

    @staticmethod
    def format_lesson(lesson: dict, include_content: bool = True) -> Dict[str, Any]:
        """Convert an embedded lesson to its API shape."""
        formatted = {
            "id": lesson["lessonId"],
            "title": lesson.get("title"),
            "description": lesson.get("description"),
            "duration": lesson.get("duration", 0),
            "order": lesson.get("order"),
            "isPublished": lesson.get("isPublished", False),
            "createdAt": lesson.get("createdAt"),
            "updatedAt": lesson.get("updatedAt"),
        }

        if include_content:
            formatted["content"] = lesson.get("content")
            formatted["videoUrl"] = lesson.get("videoUrl", "")
            formatted["resources"] = lesson.get("resources", [])

        return formatted

    @classmethod
    def format_course(
        cls,
        course: dict,
        profiles: Optional[Dict[str, dict]] = None,
        include_content: bool = False,
        include_roster: bool = False,
    ) -> Dict[str, Any]:
        """
        Convert a course document to its API shape.

        Args:
            course: Course document
            profiles: Public profiles keyed by user id (educator, reviewers)
            include_content: Include lesson content, video and resources
            include_roster: Include the enrolled-student roster
        """
        profiles = profiles or {}
        educator_id = str(course.get("educatorId"))

        formatted = {
            "id": str(course["_id"]),
            "title": course.get("title"),
            "description": course.get("description"),
            "shortDescription": course.get("shortDescription", ""),
            "educatorId": educator_id,
            "educator": profiles.get(educator_id),
            "category": course.get("category"),
            "level": course.get("level"),
            "price": course.get("price"),
            "originalPrice": course.get("originalPrice"),
            "thumbnail": course.get("thumbnail", ""),
            "tags": course.get("tags", []),
            "requirements": course.get("requirements", []),
            "learningOutcomes": course.get("learningOutcomes", []),
            "language": course.get("language"),
            "certificate": course.get("certificate", True),
            "isPublished": course.get("isPublished", False),
            "isFeatured": course.get("isFeatured", False),
            "lessons": [cls.format_lesson(lesson, include_content) for lesson in course.get("lessons", [])],
            "totalLessons": course.get("totalLessons", 0),
            "totalDuration": course.get("totalDuration", 0),
            "totalEnrollments": course.get("totalEnrollments", 0),
            "rating": course.get("rating", 0),
            "numReviews": course.get("numReviews", 0),
            "reviews": [
                {
                    "userId": str(review["userId"]),
                    "user": profiles.get(str(review["userId"])),
                    "rating": review["rating"],
                    "comment": review.get("comment"),
                    "createdAt": review.get("createdAt"),
                }
                for review in course.get("reviews", [])
            ],
            "createdAt": course.get("createdAt"),
            "updatedAt": course.get("updatedAt"),
        }

        if include_roster:
            formatted["enrolledStudents"] = [
                {
                    "studentId": str(entry["studentId"]),
                    "enrolledAt": entry.get("enrolledAt"),
                    "progress": entry.get("progress", 0),
                    "completedLessonIds": entry.get("completedLessonIds", []),
                }
                for entry in course.get("enrolledStudents", [])
            ]

        return formatted

    @staticmethod
    def format_summary(course: dict, educator: Optional[dict] = None) -> Dict[str, Any]:
        """Compact course card used in listings that embed courses."""
        return {
            "id": str(course["_id"]),
            "title": course.get("title"),
            "description": course.get("description"),
            "thumbnail": course.get("thumbnail", ""),
            "educatorId": str(course.get("educatorId")),
            "educator": educator,
            "price": course.get("price"),
            "rating": course.get("rating", 0),
            "numReviews": course.get("numReviews", 0),
            "totalEnrollments": course.get("totalEnrollments", 0),
            "totalLessons": course.get("totalLessons", 0),
            "totalDuration": course.get("totalDuration", 0),
        }

    @staticmethod
    def format_review(review: dict) -> Dict[str, Any]:
        """Convert a stored review to its API shape."""
        return {
            "userId": str(review["userId"]),
            "rating": review["rating"],
            "comment": review.get("comment"),
            "createdAt": review.get("createdAt"),
        }
