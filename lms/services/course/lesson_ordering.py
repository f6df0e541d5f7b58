"""
Explicit ordering structure for a course's embedded lessons.

Lessons are held in a map keyed by lesson id plus a separate sequence of ids
sorted by each lesson's ``order`` field. Every mutation that can change the
order goes through this class, so collision checks, re-sorting and dense
renumbering happen in one place and can be tested without a database.

Example:
    ordering = LessonOrdering(course["lessons"])
    ordering.remove(lesson_id)          # survivors renumbered 1..n
    course["lessons"] = ordering.to_list()
"""

from typing import Any, Dict, Iterable, List

from common.utils.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)


class LessonOrdering:
    """
    Ordered map of lessons keyed by ``lessonId``.

    Lesson dicts are copied on the way in and on the way out; callers never
    share state with the structure.
    """

    def __init__(self, lessons: Iterable[Dict[str, Any]] = ()):
        self._lessons: Dict[str, Dict[str, Any]] = {}
        self._sequence: List[str] = []

        for lesson in lessons:
            lesson_id = lesson["lessonId"]
            self._lessons[lesson_id] = dict(lesson)
            self._sequence.append(lesson_id)

        self._sort()

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._sequence)

    def __contains__(self, lesson_id: str) -> bool:
        return lesson_id in self._lessons

    @property
    def ids(self) -> List[str]:
        """Lesson ids in order."""
        return list(self._sequence)

    def get(self, lesson_id: str) -> Dict[str, Any]:
        """
        Get a copy of a lesson.

        Raises:
            NotFoundException: Unknown lesson id
        """
        return dict(self._require(lesson_id))

    def to_list(self) -> List[Dict[str, Any]]:
        """Lessons sorted by order."""
        return [dict(self._lessons[lesson_id]) for lesson_id in self._sequence]

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    def add(self, lesson: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a lesson at the position given by its order.

        Raises:
            ConflictException: Another lesson already uses this order
        """
        if self._order_taken(lesson["order"]):
            raise ConflictException(
                message="A lesson with this order already exists",
                code="LESSON_ORDER_TAKEN",
            )

        lesson_id = lesson["lessonId"]
        self._lessons[lesson_id] = dict(lesson)
        self._sequence.append(lesson_id)
        self._sort()
        return self.get(lesson_id)

    def update(self, lesson_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply field changes to a lesson, re-sorting if its order moved.

        Raises:
            NotFoundException: Unknown lesson id
            ConflictException: New order collides with another lesson
        """
        lesson = self._require(lesson_id)

        new_order = changes.get("order")
        if new_order is not None and new_order != lesson["order"]:
            if self._order_taken(new_order, exclude=lesson_id):
                raise ConflictException(
                    message="A lesson with this order already exists",
                    code="LESSON_ORDER_TAKEN",
                )

        lesson.update({k: v for k, v in changes.items() if k != "lessonId"})
        self._sort()
        return self.get(lesson_id)

    def remove(self, lesson_id: str) -> Dict[str, Any]:
        """
        Delete a lesson and renumber the rest densely as 1..n.

        Every lesson after the removed one moves down by one.

        Raises:
            NotFoundException: Unknown lesson id
        """
        lesson = self._require(lesson_id)
        del self._lessons[lesson_id]
        self._sequence.remove(lesson_id)
        self._renumber()
        return lesson

    def reorder(self, lesson_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Replace the ordering with the given permutation of lesson ids.

        Assigns order = position + 1. Lesson content is untouched.

        Raises:
            ValidationException: Unknown ids, repeated ids, or ids missing
                from the permutation
        """
        unknown = [lesson_id for lesson_id in lesson_ids if lesson_id not in self._lessons]
        if unknown:
            raise ValidationException(
                message="Some lesson IDs are invalid",
                code="INVALID_LESSON_IDS",
                errors=[{"field": "lessonIds", "message": f"Unknown lesson id {lesson_id}"} for lesson_id in unknown],
            )

        if len(set(lesson_ids)) != len(lesson_ids):
            raise ValidationException(
                message="Lesson IDs must not repeat",
                code="DUPLICATE_LESSON_IDS",
            )

        missing = [lesson_id for lesson_id in self._sequence if lesson_id not in set(lesson_ids)]
        if missing:
            raise ValidationException(
                message="Lesson IDs must include every lesson in the course",
                code="INCOMPLETE_LESSON_IDS",
                errors=[{"field": "lessonIds", "message": f"Missing lesson id {lesson_id}"} for lesson_id in missing],
            )

        self._sequence = list(lesson_ids)
        self._renumber()
        return self.to_list()

    def toggle_publish(self, lesson_id: str) -> Dict[str, Any]:
        """
        Flip a lesson's isPublished flag.

        Raises:
            NotFoundException: Unknown lesson id
        """
        lesson = self._require(lesson_id)
        lesson["isPublished"] = not lesson.get("isPublished", False)
        return self.get(lesson_id)

    # ─────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────

    def _require(self, lesson_id: str) -> Dict[str, Any]:
        lesson = self._lessons.get(lesson_id)
        if lesson is None:
            raise NotFoundException(message="Lesson not found", code="LESSON_NOT_FOUND")
        return lesson

    def _order_taken(self, order: int, exclude: str = None) -> bool:
        return any(
            lesson["order"] == order
            for lesson_id, lesson in self._lessons.items()
            if lesson_id != exclude
        )

    def _sort(self) -> None:
        # Stable, so equal orders keep their current relative position
        self._sequence.sort(key=lambda lesson_id: self._lessons[lesson_id]["order"])

    def _renumber(self) -> None:
        for index, lesson_id in enumerate(self._sequence):
            self._lessons[lesson_id]["order"] = index + 1
