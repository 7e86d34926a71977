# models/enrollment.py
from pydantic import BaseModel
from typing import Literal, Optional

from .batch import batch_id_schema
from .common import object_id
from .course import CourseId

EnrollmentStatus = Literal["enrolled", "completed", "dropped"]


class CreateEnrollment(BaseModel):
    courseId: CourseId
    batchId: Optional[batch_id_schema] = None


class EnrollmentQuery(BaseModel):
    courseId: Optional[CourseId] = None
    status: Optional[EnrollmentStatus] = None


class AdminEnrollmentQuery(BaseModel):
    course: Optional[CourseId] = None
    batch: Optional[batch_id_schema] = None
    status: Optional[EnrollmentStatus] = None
    student: Optional[object_id("Invalid student ID")] = None
