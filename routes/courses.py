# routes/courses.py
from fastapi import APIRouter, HTTPException, Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List
import logging
import re

from database import get_db
from models.api import PaginationMeta
from models.common import serialize, to_object_id
from models.course import SORT_FIELDS, CourseListQuery, CreateCourse, UpdateCourse, course_id_schema
from models.user import TokenPayload
from .auth import get_optional_user, require_admin
from .dependencies import path_id, query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])


async def populate_instructors(db: AsyncIOMotorDatabase, courses: List[dict]) -> List[dict]:
    """Replace instructor ids with {_id, name, email}."""
    ids = list({c["instructor"] for c in courses if c.get("instructor")})
    if not ids:
        return courses
    users = await db.users.find({"_id": {"$in": ids}}, {"name": 1, "email": 1}).to_list(None)
    by_id = {u["_id"]: u for u in users}
    for course in courses:
        instructor = by_id.get(course.get("instructor"))
        if instructor:
            course["instructor"] = {
                "_id": instructor["_id"],
                "name": instructor.get("name", ""),
                "email": instructor.get("email", ""),
            }
    return courses


async def get_owned_course(db: AsyncIOMotorDatabase, course_id: str, user: TokenPayload, action: str) -> dict:
    path_id(course_id_schema, course_id, "Invalid course ID")
    course = await db.courses.find_one({"_id": to_object_id(course_id)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if str(course["instructor"]) != user.userId:
        raise HTTPException(status_code=403, detail=f"Forbidden. You can only {action} your own courses.")
    return course


@router.get("")
async def list_courses(
    query: CourseListQuery = Depends(query_params(CourseListQuery)),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    logger.info(f"Listing courses: {query.model_dump(exclude_none=True)}")
    filter = {"isPublished": True}

    if query.search:
        pattern = {"$regex": re.escape(query.search), "$options": "i"}
        clauses = [{"title": pattern}, {"description": pattern}]
        instructors = await db.users.find({"name": pattern, "role": "admin"}, {"_id": 1}).to_list(None)
        if instructors:
            clauses.append({"instructor": {"$in": [i["_id"] for i in instructors]}})
        filter["$or"] = clauses

    if query.category:
        filter["category"] = query.category
    if query.tags:
        filter["tags"] = {"$in": query.tags}
    if query.level:
        filter["level"] = query.level

    sort_field, direction = SORT_FIELDS.get(query.sort, ("createdAt", -1))
    skip = (query.page - 1) * query.limit

    total = await db.courses.count_documents(filter)
    courses = (
        await db.courses.find(filter)
        .sort(sort_field, direction)
        .skip(skip)
        .limit(query.limit)
        .to_list(None)
    )
    await populate_instructors(db, courses)

    return {
        "data": {
            "courses": serialize(courses),
            "pagination": PaginationMeta.build(query.page, query.limit, total).model_dump(),
        }
    }


@router.get("/{course_id}")
async def get_course(course_id: str, request: Request, db: AsyncIOMotorDatabase = Depends(get_db)):
    path_id(course_id_schema, course_id, "Invalid course ID")
    viewer = get_optional_user(request)

    course = await db.courses.find_one({"_id": to_object_id(course_id)})
    # unpublished courses are only visible to admins
    if not course or (not course.get("isPublished") and (not viewer or viewer.role != "admin")):
        raise HTTPException(status_code=404, detail="Course not found")

    await populate_instructors(db, [course])
    lessons = await db.lessons.find({"course": course["_id"]}).sort("order", 1).to_list(None)
    course["lessons"] = lessons
    return {"data": serialize(course)}


@router.post("", status_code=201)
async def create_course(
    course: CreateCourse,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    logger.info(f"Creating course '{course.title}', current_user: {current_user.userId}")
    now = datetime.utcnow()
    course_dict = course.model_dump()
    course_dict["instructor"] = to_object_id(current_user.userId)
    course_dict["createdAt"] = now
    course_dict["updatedAt"] = now
    await db.courses.insert_one(course_dict)
    await populate_instructors(db, [course_dict])
    return {"message": "Course created successfully", "data": serialize(course_dict)}


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    update_data: UpdateCourse,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_owned_course(db, course_id, current_user, "update")
    update_dict = update_data.changes()
    logger.info(f"Updating course {course_id} with {update_dict}, current_user: {current_user.userId}")
    update_dict["updatedAt"] = datetime.utcnow()

    await db.courses.update_one({"_id": course["_id"]}, {"$set": update_dict})
    course.update(update_dict)
    await populate_instructors(db, [course])
    return {"message": "Course updated successfully", "data": serialize(course)}


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_owned_course(db, course_id, current_user, "delete")
    if await db.enrollments.count_documents({"course": course["_id"]}) > 0:
        raise HTTPException(
            status_code=409,
            detail="Cannot delete course with existing enrollments. Please remove enrollments first.",
        )
    await db.courses.delete_one({"_id": course["_id"]})
    logger.info(f"Deleted course {course_id}, current_user: {current_user.userId}")
    return {"message": "Course deleted successfully"}
