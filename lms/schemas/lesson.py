"""
Pydantic models for lesson request validation.
"""

from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field

URL_PATTERN = r"^https?://\S+$"


class ResourceInput(BaseModel):
    """Downloadable or linked lesson resource."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    url: str = Field(..., pattern=URL_PATTERN)
    type: Literal["pdf", "video", "link", "document"] = "link"


class LessonCreateRequest(BaseModel):
    """Request body for adding a lesson."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    content: str = Field(..., min_length=10)
    order: int = Field(..., ge=1)
    duration: int = Field(default=0, ge=0, description="Minutes")
    videoUrl: Optional[str] = Field(None, pattern=URL_PATTERN)
    isPublished: bool = False
    resources: List[ResourceInput] = Field(default_factory=list)


class LessonUpdateRequest(BaseModel):
    """Request body for updating a lesson. Only provided fields change."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    content: Optional[str] = Field(None, min_length=10)
    order: Optional[int] = Field(None, ge=1)
    duration: Optional[int] = Field(None, ge=0)
    videoUrl: Optional[str] = Field(None, pattern=URL_PATTERN)
    isPublished: Optional[bool] = None
    resources: Optional[List[ResourceInput]] = None


class ReorderLessonsRequest(BaseModel):
    """Full permutation of the course's lesson ids in their new order."""
    lessonIds: List[str] = Field(..., min_length=1)
