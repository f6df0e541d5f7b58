"""
Derived-field calculations for courses and enrollments.

Pure functions with no storage access. Services call them explicitly before
every save so the derived fields (lesson totals, rating, progress, completion
timestamp) never drift from the data they summarise.
"""

import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Tuple


def _round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def calculate_progress(total_lessons: int, completed_count: int) -> int:
    """
    Percentage of a course's lessons that are complete.

    Args:
        total_lessons: Number of lessons in the course
        completed_count: Number of completed lessons on the enrollment

    Returns:
        Integer in [0, 100]; 0 when the course has no lessons
    """
    if total_lessons <= 0:
        return 0
    # Integer form of round(100 * completed / total) with halves rounding up
    progress = (200 * completed_count + total_lessons) // (2 * total_lessons)
    return max(0, min(100, progress))


def is_completed(enrollment: Dict[str, Any]) -> bool:
    """Check whether an enrollment has reached 100%."""
    return enrollment.get("progress", 0) == 100


def touch(enrollment: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Refresh lastAccessed. Applied on every enrollment save."""
    enrollment["lastAccessed"] = now
    return enrollment


def apply_progress(
    enrollment: Dict[str, Any],
    total_lessons: int,
    now: datetime,
) -> Dict[str, Any]:
    """
    Recompute progress after completedLessons changed.

    Sets completedAt the first time progress reaches 100. An existing
    completedAt is never cleared or moved.

    Args:
        enrollment: Enrollment document, modified in place
        total_lessons: Current lesson count of the enrolled course
        now: Timestamp for completedAt / lastAccessed

    Returns:
        The same enrollment document
    """
    completed = enrollment.get("completedLessons", [])
    enrollment["progress"] = calculate_progress(total_lessons, len(completed))

    if enrollment["progress"] == 100 and not enrollment.get("completedAt"):
        enrollment["completedAt"] = now

    return touch(enrollment, now)


def course_totals(lessons: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
    """
    Lesson count and summed duration (minutes) of a course.

    Returns:
        (totalLessons, totalDuration)
    """
    lessons = list(lessons)
    return len(lessons), sum(lesson.get("duration", 0) or 0 for lesson in lessons)


def course_rating(reviews: List[Dict[str, Any]]) -> Tuple[float, int]:
    """
    Arithmetic mean of review ratings.

    Returns:
        (rating, numReviews); rating is 0 when there are no reviews
    """
    if not reviews:
        return 0, 0
    total = sum(review["rating"] for review in reviews)
    return total / len(reviews), len(reviews)


def average_quiz_score(quiz_scores: List[Dict[str, Any]]) -> int:
    """Rounded mean quiz score, 0 when no quizzes were taken."""
    if not quiz_scores:
        return 0
    total = sum(quiz["score"] for quiz in quiz_scores)
    return _round_half_up(total / len(quiz_scores))


def apply_course_totals(course: Dict[str, Any]) -> Dict[str, Any]:
    """Recompute totalLessons/totalDuration on a course document in place."""
    course["totalLessons"], course["totalDuration"] = course_totals(course.get("lessons", []))
    return course


def apply_course_rating(course: Dict[str, Any]) -> Dict[str, Any]:
    """Recompute rating/numReviews on a course document in place."""
    course["rating"], course["numReviews"] = course_rating(course.get("reviews", []))
    return course
