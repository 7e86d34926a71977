# models/course.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional

from .common import PartialUpdate, object_id, url_or_empty

CourseLevel = Literal["beginner", "intermediate", "advanced"]
CourseSort = Literal["price-asc", "price-desc", "title-asc", "title-desc"]

CourseId = object_id("Invalid course ID")
course_id_schema = CourseId

SORT_FIELDS = {
    "price-asc": ("price", 1),
    "price-desc": ("price", -1),
    "title-asc": ("title", 1),
    "title-desc": ("title", -1),
}


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class CreateCourse(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10)
    thumbnail: Optional[url_or_empty("Invalid thumbnail URL")] = None
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    tags: List[str] = []
    duration: float = Field(..., ge=1)
    level: CourseLevel = "beginner"
    language: str = "English"
    isPublished: bool = False

    @field_validator("title", "description", "category", "language", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("tags", mode="before")
    @classmethod
    def strip_tags(cls, value):
        return [_strip(tag) for tag in value] if isinstance(value, list) else value


class UpdateCourse(PartialUpdate):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=10)
    thumbnail: Optional[url_or_empty("Invalid thumbnail URL")] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[str]] = None
    duration: Optional[float] = Field(None, ge=1)
    level: Optional[CourseLevel] = None
    language: Optional[str] = None
    isPublished: Optional[bool] = None

    @field_validator("title", "description", "category", "language", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)


class CourseListQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(12, ge=1, le=50)
    search: Optional[str] = None
    sort: Optional[CourseSort] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    level: Optional[CourseLevel] = None

    @field_validator("page", "limit", mode="before")
    @classmethod
    def empty_to_default(cls, value, info):
        if value in (None, ""):
            return 1 if info.field_name == "page" else 12
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",")] if value else None
        return value
