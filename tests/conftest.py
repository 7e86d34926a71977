import asyncio
import os
from datetime import datetime

# settings are read once at import, so the environment is fixed before the app loads
os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_SECRET_KEY"] = "admin-secret"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app
from models.user import TokenPayload
from routes.auth import generate_token, hash_password

PASSWORD = "secret123"


def run(coro):
    return asyncio.run(coro)


def bearer(user: dict) -> dict:
    token = generate_token(TokenPayload(userId=str(user["_id"]), email=user["email"], role=user["role"]))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    return AsyncMongoMockClient()["coursemaster_test"]


@pytest.fixture
def client(db):
    async def override_get_db():
        return db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def factory(name="Test User", email="user@example.com", role="student", password=PASSWORD):
        now = datetime.utcnow()
        user = {
            "name": name,
            "email": email,
            "password": hash_password(password),
            "role": role,
            "createdAt": now,
            "updatedAt": now,
        }
        run(db.users.insert_one(user))
        return user

    return factory


@pytest.fixture
def student(make_user):
    return make_user(name="Sam Student", email="sam@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(name="Ada Admin", email="ada@example.com", role="admin")


@pytest.fixture
def make_course(db):
    def factory(instructor: dict, title="Intro to Testing", published=True, lessons=0, **fields):
        now = datetime.utcnow()
        course = {
            "title": title,
            "description": "A course about writing good tests.",
            "price": 10,
            "category": "Programming",
            "tags": ["testing"],
            "duration": 60,
            "level": "beginner",
            "language": "English",
            "isPublished": published,
            "instructor": instructor["_id"],
            "createdAt": now,
            "updatedAt": now,
            **fields,
        }
        run(db.courses.insert_one(course))
        course["lessons"] = []
        for order in range(1, lessons + 1):
            lesson = {
                "course": course["_id"],
                "title": f"Lesson {order}",
                "description": f"Lesson number {order}",
                "duration": 10,
                "order": order,
                "isPreview": order == 1,
            }
            run(db.lessons.insert_one(lesson))
            course["lessons"].append(lesson)
        return course

    return factory


@pytest.fixture
def enroll(db):
    def factory(student: dict, course: dict, status="enrolled"):
        now = datetime.utcnow()
        enrollment = {
            "student": student["_id"],
            "course": course["_id"],
            "status": status,
            "enrolledAt": now,
            "createdAt": now,
            "updatedAt": now,
        }
        run(db.enrollments.insert_one(enrollment))
        return enrollment

    return factory
