from lms.services.enrollment.enrollment_service import EnrollmentService

__all__ = ["EnrollmentService"]
