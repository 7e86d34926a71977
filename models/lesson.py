# models/lesson.py
from pydantic import BaseModel, Field
from typing import Optional

from .common import PartialUpdate, object_id, url_or_empty
from .course import CourseId

LessonId = object_id("Invalid lesson ID")


class CreateLesson(BaseModel):
    course: CourseId
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    videoUrl: Optional[url_or_empty("Invalid URL")] = None
    duration: float = Field(..., ge=0)
    order: int = Field(..., ge=1)
    isPreview: bool = False


class UpdateLesson(PartialUpdate):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    videoUrl: Optional[url_or_empty("Invalid URL")] = None
    duration: Optional[float] = Field(None, ge=0)
    order: Optional[int] = Field(None, ge=1)
    isPreview: Optional[bool] = None


class Lesson(BaseModel):
    """Display shape consumed by the lesson components."""

    id: str = Field(..., alias="_id")
    title: str
    description: Optional[str] = None
    videoUrl: Optional[str] = None
    duration: Optional[float] = None
    order: int = 1
