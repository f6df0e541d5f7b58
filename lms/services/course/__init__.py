"""
Course aggregate: course documents, embedded lessons, roster and reviews.
"""

from lms.services.course.lesson_ordering import LessonOrdering
from lms.services.course.course_service import CourseService, build_lesson, CATEGORIES, LEVELS, SORT_OPTIONS

__all__ = ["LessonOrdering", "CourseService", "build_lesson", "CATEGORIES", "LEVELS", "SORT_OPTIONS"]
