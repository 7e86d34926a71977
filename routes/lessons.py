# routes/lessons.py
from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import logging

from database import get_db
from models.common import serialize, to_object_id
from models.course import course_id_schema
from models.lesson import CreateLesson, LessonId, UpdateLesson
from models.user import TokenPayload
from .auth import require_admin
from .dependencies import path_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lessons", tags=["lessons"])


@router.get("")
async def list_lessons(courseId: Optional[str] = None, db: AsyncIOMotorDatabase = Depends(get_db)):
    if not courseId:
        raise HTTPException(status_code=400, detail="courseId is required")
    path_id(course_id_schema, courseId, "Invalid course ID")
    lessons = await db.lessons.find({"course": to_object_id(courseId)}).sort("order", 1).to_list(None)
    return {"data": serialize(lessons)}


@router.get("/{lesson_id}")
async def get_lesson(lesson_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    path_id(LessonId, lesson_id, "Invalid lesson ID")
    lesson = await db.lessons.find_one({"_id": to_object_id(lesson_id)})
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return {"data": serialize(lesson)}


@router.post("", status_code=201)
async def create_lesson(
    lesson: CreateLesson,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await db.courses.find_one({"_id": to_object_id(lesson.course)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if str(course["instructor"]) != current_user.userId:
        raise HTTPException(status_code=403, detail="Forbidden. You can only add lessons to your own courses.")

    now = datetime.utcnow()
    lesson_dict = lesson.model_dump()
    lesson_dict["course"] = course["_id"]
    lesson_dict["createdAt"] = now
    lesson_dict["updatedAt"] = now
    await db.lessons.insert_one(lesson_dict)
    logger.info(f"Created lesson '{lesson.title}' in course {lesson.course}")
    return {"message": "Lesson created successfully", "data": serialize(lesson_dict)}


async def get_owned_lesson(db: AsyncIOMotorDatabase, lesson_id: str, user: TokenPayload) -> dict:
    path_id(LessonId, lesson_id, "Invalid lesson ID")
    lesson = await db.lessons.find_one({"_id": to_object_id(lesson_id)})
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    course = await db.courses.find_one({"_id": lesson["course"]}, {"instructor": 1})
    if not course or str(course["instructor"]) != user.userId:
        raise HTTPException(status_code=403, detail="Forbidden")
    return lesson


@router.put("/{lesson_id}")
async def update_lesson(
    lesson_id: str,
    update_data: UpdateLesson,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await get_owned_lesson(db, lesson_id, current_user)
    update_dict = update_data.changes()
    logger.info(f"Updating lesson {lesson_id} with {update_dict}, current_user: {current_user.userId}")
    update_dict["updatedAt"] = datetime.utcnow()

    await db.lessons.update_one({"_id": lesson["_id"]}, {"$set": update_dict})
    lesson.update(update_dict)
    return {"message": "Lesson updated successfully", "data": serialize(lesson)}


@router.delete("/{lesson_id}")
async def delete_lesson(
    lesson_id: str,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await get_owned_lesson(db, lesson_id, current_user)
    await db.lessons.delete_one({"_id": lesson["_id"]})
    # progress only counts lessons that still exist
    await db.progress.delete_many({"lesson": lesson["_id"]})
    logger.info(f"Deleted lesson {lesson_id}, current_user: {current_user.userId}")
    return {"message": "Lesson deleted successfully"}
