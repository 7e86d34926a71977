# services/seed.py
import json
import logging
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase

from config import settings
from routes.auth import hash_password

logger = logging.getLogger(__name__)


def load_seed_data(path: str = None) -> dict:
    with open(path or settings.SEED_DATA_PATH, encoding="utf-8") as f:
        return json.load(f)


async def seed_database(db: AsyncIOMotorDatabase, data: dict = None) -> dict:
    """Insert the seed users, courses and lessons, skipping anything already present.

    Per-record failures are collected in ``errors`` instead of aborting the run.
    """
    data = data if data is not None else load_seed_data()
    errors = []
    users_created = 0
    courses_created = 0
    lessons_created = 0

    users = data.get("users", [])
    courses = data.get("courses", [])
    logger.info(f"Found {len(users)} users and {len(courses)} courses to seed")

    user_ids = {}  # email -> _id
    for user_data in users:
        email = user_data["email"].strip().lower()
        try:
            existing = await db.users.find_one({"email": email})
            if existing:
                logger.info(f"User {email} already exists, skipping")
                user_ids[email] = existing["_id"]
                continue
            now = datetime.utcnow()
            result = await db.users.insert_one({
                "name": user_data["name"],
                "email": email,
                "password": hash_password(user_data["password"]),
                "role": user_data.get("role", "student"),
                "createdAt": now,
                "updatedAt": now,
            })
            user_ids[email] = result.inserted_id
            users_created += 1
            logger.info(f"Created user: {user_data['name']} ({email})")
        except Exception as e:
            message = f"Failed to create user {email}: {str(e)}"
            logger.error(message)
            errors.append(message)

    for course_data in courses:
        title = course_data.get("title", "<untitled>")
        instructor_email = course_data.get("instructorEmail", "").strip().lower()
        instructor_id = user_ids.get(instructor_email)
        if not instructor_id:
            message = f"Instructor {instructor_email} not found for course {title}"
            logger.error(message)
            errors.append(message)
            continue
        try:
            if await db.courses.find_one({"title": title, "instructor": instructor_id}):
                logger.info(f"Course {title} already exists, skipping")
                continue
            now = datetime.utcnow()
            course = {
                key: value
                for key, value in course_data.items()
                if key not in ("instructorEmail", "lessons")
            }
            course.setdefault("tags", [])
            course.setdefault("level", "beginner")
            course.setdefault("language", "English")
            course.setdefault("isPublished", False)
            course.update({"instructor": instructor_id, "createdAt": now, "updatedAt": now})
            result = await db.courses.insert_one(course)
            courses_created += 1
            logger.info(f"Created course: {title}")

            for lesson_data in course_data.get("lessons", []):
                lesson = dict(lesson_data)
                lesson.setdefault("isPreview", False)
                lesson.update({"course": result.inserted_id, "createdAt": now, "updatedAt": now})
                await db.lessons.insert_one(lesson)
                lessons_created += 1
        except Exception as e:
            message = f"Failed to create course {title}: {str(e)}"
            logger.error(message)
            errors.append(message)

    logger.info(
        f"Seeding finished: {users_created} users, {courses_created} courses, "
        f"{lessons_created} lessons, {len(errors)} errors"
    )
    return {
        "usersCreated": users_created,
        "coursesCreated": courses_created,
        "lessonsCreated": lessons_created,
        "errors": errors,
    }
