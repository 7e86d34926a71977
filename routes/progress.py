# routes/progress.py
from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from datetime import datetime
import logging

from database import get_db
from models.common import serialize, to_object_id
from models.progress import CourseProgress, ProgressQuery, UpdateProgress
from models.user import TokenPayload
from .auth import require_student
from .dependencies import query_params, verify_enrollment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


async def course_progress(db: AsyncIOMotorDatabase, student_id, course_id) -> CourseProgress:
    course_oid = to_object_id(course_id)
    total = await db.lessons.count_documents({"course": course_oid})
    completed = await db.progress.count_documents({
        "student": to_object_id(student_id),
        "course": course_oid,
        "isCompleted": True,
    })
    return CourseProgress.compute(str(course_oid), completed, total)


@router.post("")
async def update_progress(
    request: UpdateProgress,
    current_user: TokenPayload = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await verify_enrollment(
        db, current_user.userId, request.courseId,
        "You must be enrolled in this course to track progress",
    )

    course = await db.courses.find_one({"_id": to_object_id(request.courseId)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    lesson = await db.lessons.find_one({"_id": to_object_id(request.lessonId)})
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    if lesson["course"] != course["_id"]:
        raise HTTPException(status_code=400, detail="Lesson does not belong to this course")

    key = {
        "student": to_object_id(current_user.userId),
        "course": course["_id"],
        "lesson": lesson["_id"],
    }
    now = datetime.utcnow()
    existing = await db.progress.find_one(key)

    if existing:
        update = {
            "isCompleted": request.isCompleted,
            "timeSpent": existing.get("timeSpent", 0) + request.timeSpent,
            "lastAccessedAt": now,
            "updatedAt": now,
        }
        # completion time is recorded once
        if request.isCompleted and not existing.get("completedAt"):
            update["completedAt"] = now
        progress = await db.progress.find_one_and_update(
            {"_id": existing["_id"]}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
    else:
        progress = {
            **key,
            "isCompleted": request.isCompleted,
            "timeSpent": request.timeSpent,
            "lastAccessedAt": now,
            "createdAt": now,
            "updatedAt": now,
        }
        if request.isCompleted:
            progress["completedAt"] = now
        await db.progress.insert_one(progress)

    logger.info(
        f"Progress for lesson {lesson['_id']} updated, completed={request.isCompleted}, "
        f"current_user: {current_user.userId}"
    )
    return {"message": "Progress updated successfully", "data": serialize(progress)}


@router.get("")
async def get_progress(
    query: ProgressQuery = Depends(query_params(ProgressQuery)),
    current_user: TokenPayload = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    filter = {"student": to_object_id(current_user.userId)}
    if query.courseId:
        filter["course"] = to_object_id(query.courseId)
    if query.lessonId:
        filter["lesson"] = to_object_id(query.lessonId)

    records = await db.progress.find(filter).sort("lastAccessedAt", -1).to_list(None)
    response = {"data": serialize(records)}
    if query.courseId:
        summary = await course_progress(db, current_user.userId, query.courseId)
        response["courseProgress"] = summary.model_dump()
    return response
