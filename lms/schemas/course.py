"""
Pydantic models for course request validation.
"""

from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from lms.schemas.lesson import LessonCreateRequest

Category = Literal[
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
]
Level = Literal["beginner", "intermediate", "advanced"]
SortOption = Literal["newest", "oldest", "price-low", "price-high", "rating"]


class CourseCreateRequest(BaseModel):
    """Request body for creating a course."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    shortDescription: Optional[str] = Field(None, max_length=200)
    category: Category
    level: Level
    price: float = Field(..., ge=0)
    originalPrice: Optional[float] = Field(None, ge=0)
    thumbnail: Optional[str] = Field(None, max_length=500)
    tags: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    learningOutcomes: List[str] = Field(default_factory=list)
    language: str = Field(default="English", max_length=50)
    certificate: bool = True
    isPublished: bool = False
    isFeatured: bool = False
    lessons: List[LessonCreateRequest] = Field(default_factory=list)


class CourseUpdateRequest(BaseModel):
    """Request body for updating a course. Only provided fields change."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    shortDescription: Optional[str] = Field(None, max_length=200)
    category: Optional[Category] = None
    level: Optional[Level] = None
    price: Optional[float] = Field(None, ge=0)
    originalPrice: Optional[float] = Field(None, ge=0)
    thumbnail: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    learningOutcomes: Optional[List[str]] = None
    language: Optional[str] = Field(None, max_length=50)
    certificate: Optional[bool] = None
    isPublished: Optional[bool] = None
    isFeatured: Optional[bool] = None


class ReviewRequest(BaseModel):
    """Request body for reviewing a course."""
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10, max_length=500)
