"""
Pydantic models for enrollment request validation.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EnrollRequest(BaseModel):
    """Request body for enrolling in a course."""
    courseId: str = Field(..., min_length=1)


class CompleteLessonRequest(BaseModel):
    """Request body for marking a lesson complete."""
    lessonId: str = Field(..., min_length=1)
    timeSpent: int = Field(default=0, ge=0, description="Minutes")


class NoteRequest(BaseModel):
    """Request body for adding a lesson note."""
    model_config = ConfigDict(str_strip_whitespace=True)

    lessonId: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1, max_length=5000)


class QuizScoreRequest(BaseModel):
    """Request body for recording a quiz result."""
    lessonId: str = Field(..., min_length=1)
    score: int = Field(..., ge=0, le=100)
    totalQuestions: int = Field(..., ge=1)
    correctAnswers: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_answers(self) -> "QuizScoreRequest":
        if self.correctAnswers > self.totalQuestions:
            raise ValueError("correctAnswers cannot exceed totalQuestions")
        return self
