# models/progress.py
from pydantic import BaseModel, Field
from typing import Optional

from .common import round_half_up


class UpdateProgress(BaseModel):
    courseId: str = Field(..., min_length=1)
    lessonId: str = Field(..., min_length=1)
    isCompleted: bool = False
    timeSpent: float = Field(0, ge=0)  # minutes


class ProgressQuery(BaseModel):
    courseId: Optional[str] = Field(None, min_length=1)
    lessonId: Optional[str] = Field(None, min_length=1)


class CourseProgress(BaseModel):
    courseId: str
    completedLessons: int
    totalLessons: int
    percentage: int

    @classmethod
    def compute(cls, course_id: str, completed: int, total: int) -> "CourseProgress":
        percentage = round_half_up(completed / total * 100) if total > 0 else 0
        return cls(
            courseId=course_id,
            completedLessons=completed,
            totalLessons=total,
            percentage=percentage,
        )
