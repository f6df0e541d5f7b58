"""
Progress and derived-field calculations.
"""

from lms.services.progress.calculator import (
    calculate_progress,
    apply_progress,
    touch,
    is_completed,
    course_totals,
    course_rating,
    average_quiz_score,
    apply_course_totals,
    apply_course_rating,
)

__all__ = [
    "calculate_progress",
    "apply_progress",
    "touch",
    "is_completed",
    "course_totals",
    "course_rating",
    "average_quiz_score",
    "apply_course_totals",
    "apply_course_rating",
]
