"""
Course platform services.

One service class per aggregate, each owning a Motor collection.
"""

from lms.services.user.user_service import UserService
from lms.services.course.lesson_ordering import LessonOrdering
from lms.services.course.course_service import CourseService
from lms.services.enrollment.enrollment_service import EnrollmentService

__all__ = [
    "UserService",
    "LessonOrdering",
    "CourseService",
    "EnrollmentService",
]
