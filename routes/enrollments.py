# routes/enrollments.py
from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from datetime import datetime
from typing import List
import logging

from database import get_db
from models.common import serialize, to_object_id
from models.enrollment import AdminEnrollmentQuery, CreateEnrollment, EnrollmentQuery
from models.user import TokenPayload
from services.email import send_enrollment_email
from .auth import require_admin, require_student
from .dependencies import query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])


async def attach_courses(db: AsyncIOMotorDatabase, enrollments: List[dict]) -> List[dict]:
    ids = list({e["course"] for e in enrollments})
    courses = await db.courses.find(
        {"_id": {"$in": ids}},
        {"title": 1, "description": 1, "thumbnail": 1, "category": 1, "level": 1, "instructor": 1},
    ).to_list(None)
    by_id = {c["_id"]: c for c in courses}
    for enrollment in enrollments:
        enrollment["course"] = by_id.get(enrollment["course"], enrollment["course"])
    return enrollments


async def attach_students(db: AsyncIOMotorDatabase, enrollments: List[dict]) -> List[dict]:
    ids = list({e["student"] for e in enrollments})
    students = await db.users.find({"_id": {"$in": ids}}, {"name": 1, "email": 1}).to_list(None)
    by_id = {s["_id"]: s for s in students}
    for enrollment in enrollments:
        enrollment["student"] = by_id.get(enrollment["student"], enrollment["student"])
    return enrollments


async def reserve_batch_seat(db: AsyncIOMotorDatabase, batch_id: str, course_id) -> dict:
    """Take one seat in the batch, failing when it is missing, foreign or full."""
    batch = await db.batches.find_one({"_id": to_object_id(batch_id)})
    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")
    if batch["course"] != course_id:
        raise HTTPException(status_code=400, detail="Batch does not belong to this course")
    if batch.get("status") == "completed":
        raise HTTPException(status_code=400, detail="Batch has already completed")

    result = await db.batches.update_one(
        {"_id": batch["_id"], "currentStudents": {"$lt": batch["maxStudents"]}},
        {"$inc": {"currentStudents": 1}},
    )
    if result.modified_count == 0:
        raise HTTPException(status_code=409, detail="Batch is full")
    return batch


@router.post("", status_code=201)
async def enroll(
    request: CreateEnrollment,
    background_tasks: BackgroundTasks,
    current_user: TokenPayload = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    logger.info(f"Enrollment request for course {request.courseId}, current_user: {current_user.userId}")
    course = await db.courses.find_one({"_id": to_object_id(request.courseId)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if not course.get("isPublished"):
        raise HTTPException(status_code=403, detail="Course is not available for enrollment")

    student_id = to_object_id(current_user.userId)
    if await db.enrollments.find_one({"student": student_id, "course": course["_id"]}):
        raise HTTPException(status_code=409, detail="You are already enrolled in this course")

    now = datetime.utcnow()
    enrollment = {
        "student": student_id,
        "course": course["_id"],
        "status": "enrolled",
        "enrolledAt": now,
        "createdAt": now,
        "updatedAt": now,
    }
    batch = None
    if request.batchId:
        batch = await reserve_batch_seat(db, request.batchId, course["_id"])
        enrollment["batch"] = batch["_id"]

    try:
        await db.enrollments.insert_one(enrollment)
    except DuplicateKeyError:
        # lost a race with a concurrent request for the same course
        if batch:
            await db.batches.update_one({"_id": batch["_id"]}, {"$inc": {"currentStudents": -1}})
        raise HTTPException(status_code=409, detail="You are already enrolled in this course")
    logger.info(f"Student {current_user.userId} enrolled in course {course['_id']}")

    student = await db.users.find_one({"_id": student_id})
    if student:
        background_tasks.add_task(
            send_enrollment_email, student["name"], student["email"], course["title"], str(course["_id"])
        )

    await attach_courses(db, [enrollment])
    return {"message": "Successfully enrolled in course", "data": serialize(enrollment)}


@router.get("")
async def list_my_enrollments(
    query: EnrollmentQuery = Depends(query_params(EnrollmentQuery)),
    current_user: TokenPayload = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    filter = {"student": to_object_id(current_user.userId)}
    if query.courseId:
        filter["course"] = to_object_id(query.courseId)
    if query.status:
        filter["status"] = query.status

    enrollments = await db.enrollments.find(filter).sort("enrolledAt", -1).to_list(None)
    await attach_courses(db, enrollments)
    return {"data": serialize(enrollments)}


@router.get("/admin")
async def list_course_enrollments(
    query: AdminEnrollmentQuery = Depends(query_params(AdminEnrollmentQuery)),
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Enrollments in the courses the calling admin teaches."""
    own_courses = await db.courses.find(
        {"instructor": to_object_id(current_user.userId)}, {"_id": 1}
    ).to_list(None)
    own_ids = [c["_id"] for c in own_courses]

    filter = {"course": {"$in": own_ids}}
    if query.course:
        course_id = to_object_id(query.course)
        if course_id not in own_ids:
            raise HTTPException(status_code=403, detail="Forbidden")
        filter["course"] = course_id
    if query.batch:
        filter["batch"] = to_object_id(query.batch)
    if query.status:
        filter["status"] = query.status
    if query.student:
        filter["student"] = to_object_id(query.student)

    enrollments = await db.enrollments.find(filter).sort("enrolledAt", -1).to_list(None)
    await attach_courses(db, enrollments)
    await attach_students(db, enrollments)
    return {"data": serialize(enrollments)}
