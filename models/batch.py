# models/batch.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from typing import Literal, Optional

from .common import PartialUpdate, object_id
from .course import CourseId

BatchStatus = Literal["upcoming", "ongoing", "completed"]

batch_id_schema = object_id("Invalid batch ID")
InstructorId = object_id("Invalid instructor ID")


def as_utc(value: datetime) -> datetime:
    """Mongo hands back naive UTC datetimes; compare everything as aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def batch_status(start: datetime, end: datetime, now: datetime = None) -> str:
    now = as_utc(now or datetime.now(timezone.utc))
    start, end = as_utc(start), as_utc(end)
    if start <= now <= end:
        return "ongoing"
    if end < now:
        return "completed"
    return "upcoming"


class CreateBatch(BaseModel):
    course: CourseId
    name: str = Field(..., min_length=3, max_length=100)
    startDate: datetime
    endDate: datetime
    maxStudents: int = Field(..., ge=1)
    instructor: Optional[InstructorId] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class UpdateBatch(PartialUpdate):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    maxStudents: Optional[int] = Field(None, ge=1)
    status: Optional[BatchStatus] = None


class BatchQuery(BaseModel):
    course: Optional[CourseId] = None
    instructor: Optional[InstructorId] = None
    status: Optional[BatchStatus] = None
