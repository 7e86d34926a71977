# routes/pages.py
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import HTMLResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging

from components import LessonContent, ProgressBar, render
from database import get_db
from models.common import serialize, to_object_id
from models.course import course_id_schema
from models.user import TokenPayload
from .auth import require_page_user
from .dependencies import path_id
from .progress import course_progress

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

require_student_page = require_page_user("student")
require_admin_page = require_page_user("admin")


@router.get("/dashboard", response_class=HTMLResponse)
async def student_dashboard(
    current_user: TokenPayload = Depends(require_student_page),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    enrollments = await db.enrollments.find(
        {"student": to_object_id(current_user.userId), "status": "enrolled"}
    ).sort("enrolledAt", -1).to_list(None)
    courses = await db.courses.find(
        {"_id": {"$in": [e["course"] for e in enrollments]}}
    ).to_list(None)
    by_id = {c["_id"]: c for c in courses}

    items = []
    for enrollment in enrollments:
        course = by_id.get(enrollment["course"])
        if not course:
            continue
        progress = await course_progress(db, current_user.userId, course["_id"])
        items.append({
            "course": serialize(course),
            "progress": progress,
            "progress_bar": ProgressBar(progress.percentage, size="sm"),
        })
    return HTMLResponse(render("pages/dashboard.html", enrollments=items))


@router.get("/learn/{course_id}", response_class=HTMLResponse)
async def learn(
    course_id: str,
    lesson: Optional[str] = None,
    current_user: TokenPayload = Depends(require_student_page),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    path_id(course_id_schema, course_id, "Invalid course ID")
    course = await db.courses.find_one({"_id": to_object_id(course_id)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    enrollment = await db.enrollments.find_one({
        "student": to_object_id(current_user.userId),
        "course": course["_id"],
        "status": "enrolled",
    })
    if not enrollment:
        return HTMLResponse(
            render("pages/not_enrolled.html", course=serialize(course)),
            status_code=403,
        )

    lessons = serialize(await db.lessons.find({"course": course["_id"]}).sort("order", 1).to_list(None))
    completed = await db.progress.find(
        {"student": enrollment["student"], "course": course["_id"], "isCompleted": True},
        {"lesson": 1},
    ).to_list(None)
    completed_ids = {str(p["lesson"]) for p in completed}

    selected = next((item for item in lessons if item["_id"] == lesson), lessons[0] if lessons else None)
    current = None
    if selected:
        current = LessonContent(selected, course_id, selected["_id"] in completed_ids)

    progress = await course_progress(db, current_user.userId, course["_id"])
    return HTMLResponse(render(
        "pages/learn.html",
        course=serialize(course),
        lessons=lessons,
        completed_ids=completed_ids,
        current=current,
        progress_bar=ProgressBar(progress.percentage),
    ))


@router.get("/admin/dashboard", response_class=HTMLResponse)
async def admin_dashboard(
    current_user: TokenPayload = Depends(require_admin_page),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    instructor = to_object_id(current_user.userId)
    course_ids = [c["_id"] for c in await db.courses.find({"instructor": instructor}, {"_id": 1}).to_list(None)]
    stats = {
        "totalCourses": len(course_ids),
        "publishedCourses": await db.courses.count_documents({"instructor": instructor, "isPublished": True}),
        "totalStudents": len(await db.enrollments.distinct("student", {"course": {"$in": course_ids}})),
        "activeEnrollments": await db.enrollments.count_documents(
            {"course": {"$in": course_ids}, "status": "enrolled"}
        ),
        "totalLessons": await db.lessons.count_documents({"course": {"$in": course_ids}}),
        "totalQuizzes": await db.quizzes.count_documents({"course": {"$in": course_ids}}),
    }
    recent_courses = await db.courses.find({"instructor": instructor}).sort("createdAt", -1).limit(5).to_list(None)
    return HTMLResponse(render("pages/admin_dashboard.html", stats=stats, recent_courses=serialize(recent_courses)))
