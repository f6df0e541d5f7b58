"""
FastAPI router for enrollments, progress, notes and quiz scores.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from lms.auth import Capability
from lms.dependencies import (
    get_course_service,
    get_enrollment_service,
    get_user_service,
    require_capability,
)
from lms.pipelines import enrollments as enrollment_pipelines
from lms.schemas.enrollment import (
    EnrollRequest,
    CompleteLessonRequest,
    NoteRequest,
    QuizScoreRequest,
)
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", status_code=201)
async def enroll(
    body: EnrollRequest,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLL))],
):
    """Enroll the caller in a published course."""
    enrollment = await enrollment_pipelines.enroll_pipeline(
        get_course_service(),
        get_enrollment_service(),
        user,
        body.courseId,
    )
    return success_response({"enrollment": enrollment}, message="Successfully enrolled in course")


@router.get("/my-enrollments")
async def my_enrollments(
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Caller's active enrollments."""
    result = await enrollment_pipelines.my_enrollments_pipeline(
        get_course_service(),
        get_enrollment_service(),
        get_user_service(),
        user,
    )
    return success_response(result)


@router.get("/{enrollment_id}")
async def get_enrollment(
    enrollment_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """One of the caller's enrollments."""
    enrollment = await enrollment_pipelines.get_enrollment_pipeline(
        get_course_service(),
        get_enrollment_service(),
        get_user_service(),
        user,
        enrollment_id,
    )
    return success_response({"enrollment": enrollment})


@router.post("/{enrollment_id}/complete-lesson")
async def complete_lesson(
    enrollment_id: str,
    body: CompleteLessonRequest,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Mark a lesson as completed."""
    enrollment = await enrollment_pipelines.complete_lesson_pipeline(
        get_course_service(),
        get_enrollment_service(),
        user,
        enrollment_id,
        body.lessonId,
        body.timeSpent,
    )
    return success_response({"enrollment": enrollment}, message="Lesson marked as completed")


@router.post("/{enrollment_id}/notes", status_code=201)
async def add_note(
    enrollment_id: str,
    body: NoteRequest,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Add a note to a lesson."""
    note = await enrollment_pipelines.add_note_pipeline(
        get_enrollment_service(),
        user,
        enrollment_id,
        body.lessonId,
        body.content,
    )
    return success_response({"note": note}, message="Note added successfully")


@router.get("/{enrollment_id}/notes/{lesson_id}")
async def get_notes(
    enrollment_id: str,
    lesson_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Notes for one lesson."""
    notes = await enrollment_pipelines.get_notes_pipeline(
        get_enrollment_service(),
        user,
        enrollment_id,
        lesson_id,
    )
    return success_response({"notes": notes})


@router.post("/{enrollment_id}/quiz-scores", status_code=201)
async def record_quiz_score(
    enrollment_id: str,
    body: QuizScoreRequest,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Record a quiz result."""
    quiz = await enrollment_pipelines.record_quiz_score_pipeline(
        get_enrollment_service(),
        user,
        enrollment_id,
        body.lessonId,
        body.score,
        body.totalQuestions,
        body.correctAnswers,
    )
    return success_response({"quizScore": quiz}, message="Quiz score recorded")


@router.get("/{enrollment_id}/progress")
async def get_progress(
    enrollment_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Progress snapshot."""
    result = await enrollment_pipelines.progress_pipeline(
        get_course_service(),
        get_enrollment_service(),
        user,
        enrollment_id,
    )
    return success_response(result)


@router.delete("/{enrollment_id}")
async def cancel_enrollment(
    enrollment_id: str,
    user: Annotated[dict, Depends(require_capability(Capability.ENROLLMENT_ACCESS))],
):
    """Cancel an enrollment; progress history is kept."""
    await enrollment_pipelines.cancel_enrollment_pipeline(
        get_course_service(),
        get_enrollment_service(),
        user,
        enrollment_id,
    )
    return success_response(message="Enrollment cancelled successfully")
