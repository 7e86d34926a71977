# routes/dependencies.py
from fastapi import HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from errors import InputValidationError
from models.common import to_object_id, validate


def query_params(schema):
    """Dependency validating the query string against ``schema``.

    Unknown and empty parameters are ignored so optional filters can be left blank.
    """

    async def dependency(request: Request):
        data = {
            name: value
            for name, value in request.query_params.items()
            if name in schema.model_fields and value != ""
        }
        result = validate(schema, data)
        if not result.ok:
            raise InputValidationError(result.errors)
        return result.value

    return dependency


def path_id(schema, value: str, message: str) -> str:
    if not validate(schema, value).ok:
        raise HTTPException(status_code=400, detail=message)
    return value


async def verify_enrollment(db: AsyncIOMotorDatabase, student_id: str, course_id, message: str) -> dict:
    """Return the student's active enrollment in the course or fail with 403."""
    enrollment = await db.enrollments.find_one({
        "student": to_object_id(student_id),
        "course": to_object_id(course_id),
        "status": "enrolled",
    })
    if not enrollment:
        raise HTTPException(status_code=403, detail=message)
    return enrollment
