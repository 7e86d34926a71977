# database.py
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from config import settings

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(settings.MONGODB_URI, serverSelectionTimeoutMS=5000)
db = client[settings.MONGODB_DB]


async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return db


async def init_db(database: AsyncIOMotorDatabase = db):
    await database.users.create_index("email", unique=True)
    await database.users.create_index("role")

    await database.courses.create_index("title")
    await database.courses.create_index("category")
    await database.courses.create_index("instructor")
    await database.courses.create_index("isPublished")
    await database.courses.create_index("tags")

    await database.lessons.create_index([("course", ASCENDING), ("order", ASCENDING)])

    await database.enrollments.create_index(
        [("student", ASCENDING), ("course", ASCENDING)], unique=True
    )
    await database.enrollments.create_index([("course", ASCENDING), ("status", ASCENDING)])
    await database.enrollments.create_index([("student", ASCENDING), ("status", ASCENDING)])
    await database.enrollments.create_index([("enrolledAt", DESCENDING)])

    await database.progress.create_index(
        [("student", ASCENDING), ("course", ASCENDING), ("lesson", ASCENDING)], unique=True
    )
    await database.progress.create_index("isCompleted")

    await database.batches.create_index([("course", ASCENDING), ("startDate", ASCENDING)])
    await database.batches.create_index("instructor")
    await database.batches.create_index("status")

    await database.quizzes.create_index("course")
    await database.quizzes.create_index("lesson")

    await database.quiz_attempts.create_index([("quiz", ASCENDING), ("student", ASCENDING)])
    logger.info("Database indexes ensured")


async def check_database_health(database: AsyncIOMotorDatabase = db) -> dict:
    try:
        await database.command("ping")
        return {"isConnected": True, "database": database.name}
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return {"isConnected": False, "database": database.name, "error": str(e)}
