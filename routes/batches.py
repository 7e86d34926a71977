# routes/batches.py
from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List
import logging

from database import get_db
from models.batch import BatchQuery, CreateBatch, UpdateBatch, as_utc, batch_id_schema, batch_status
from models.common import serialize, to_object_id
from models.user import TokenPayload
from .auth import require_admin
from .dependencies import path_id, query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/batches", tags=["batches"])


async def populate_batches(db: AsyncIOMotorDatabase, batches: List[dict]) -> List[dict]:
    """Replace course and instructor ids with their titles and names."""
    course_ids = list({b["course"] for b in batches})
    user_ids = list({b["instructor"] for b in batches})
    courses = await db.courses.find({"_id": {"$in": course_ids}}, {"title": 1}).to_list(None)
    users = await db.users.find({"_id": {"$in": user_ids}}, {"name": 1, "email": 1}).to_list(None)
    courses_by_id = {c["_id"]: c for c in courses}
    users_by_id = {u["_id"]: u for u in users}
    for batch in batches:
        batch["course"] = courses_by_id.get(batch["course"], batch["course"])
        batch["instructor"] = users_by_id.get(batch["instructor"], batch["instructor"])
    return batches


async def get_owned_batch(db: AsyncIOMotorDatabase, batch_id: str, user: TokenPayload) -> dict:
    path_id(batch_id_schema, batch_id, "Invalid batch ID")
    batch = await db.batches.find_one({"_id": to_object_id(batch_id)})
    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")
    course = await db.courses.find_one({"_id": batch["course"]}, {"instructor": 1})
    if not course or str(course["instructor"]) != user.userId:
        raise HTTPException(status_code=403, detail="Forbidden")
    return batch


@router.get("")
async def list_batches(
    query: BatchQuery = Depends(query_params(BatchQuery)),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    filter = {}
    if query.course:
        filter["course"] = to_object_id(query.course)
    if query.instructor:
        filter["instructor"] = to_object_id(query.instructor)
    if query.status:
        filter["status"] = query.status

    batches = await db.batches.find(filter).sort("startDate", -1).to_list(None)
    await populate_batches(db, batches)
    return {"data": {"batches": serialize(batches)}}


@router.get("/{batch_id}")
async def get_batch(batch_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    path_id(batch_id_schema, batch_id, "Invalid batch ID")
    batch = await db.batches.find_one({"_id": to_object_id(batch_id)})
    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")
    await populate_batches(db, [batch])
    return {"data": serialize(batch)}


@router.post("", status_code=201)
async def create_batch(
    batch: CreateBatch,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await db.courses.find_one({"_id": to_object_id(batch.course)})
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if str(course["instructor"]) != current_user.userId:
        raise HTTPException(status_code=403, detail="Forbidden. You can only create batches for your own courses.")

    start, end = as_utc(batch.startDate), as_utc(batch.endDate)
    if end <= start:
        raise HTTPException(status_code=400, detail="End date must be after start date")

    now = datetime.utcnow()
    batch_dict = batch.model_dump()
    batch_dict.update({
        "course": course["_id"],
        "instructor": to_object_id(batch.instructor or current_user.userId),
        "startDate": start,
        "endDate": end,
        "currentStudents": 0,
        "status": batch_status(start, end),
        "createdAt": now,
        "updatedAt": now,
    })
    await db.batches.insert_one(batch_dict)
    logger.info(f"Created batch '{batch.name}' for course {batch.course}, current_user: {current_user.userId}")
    await populate_batches(db, [batch_dict])
    return {"message": "Batch created successfully", "data": serialize(batch_dict)}


@router.put("/{batch_id}")
async def update_batch(
    batch_id: str,
    update_data: UpdateBatch,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    batch = await get_owned_batch(db, batch_id, current_user)
    update_dict = update_data.changes()

    if "startDate" in update_dict or "endDate" in update_dict:
        start = as_utc(update_dict.get("startDate", batch["startDate"]))
        end = as_utc(update_dict.get("endDate", batch["endDate"]))
        if end <= start:
            raise HTTPException(status_code=400, detail="End date must be after start date")
        update_dict.update({"startDate": start, "endDate": end, "status": batch_status(start, end)})
    if update_dict.get("maxStudents", batch["maxStudents"]) < batch.get("currentStudents", 0):
        raise HTTPException(status_code=400, detail="Max students cannot be lower than current enrollments")

    logger.info(f"Updating batch {batch_id} fields {list(update_dict)}, current_user: {current_user.userId}")
    update_dict["updatedAt"] = datetime.utcnow()
    await db.batches.update_one({"_id": batch["_id"]}, {"$set": update_dict})
    batch.update(update_dict)
    await populate_batches(db, [batch])
    return {"message": "Batch updated successfully", "data": serialize(batch)}


@router.delete("/{batch_id}")
async def delete_batch(
    batch_id: str,
    current_user: TokenPayload = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    batch = await get_owned_batch(db, batch_id, current_user)
    if await db.enrollments.count_documents({"batch": batch["_id"]}) > 0:
        raise HTTPException(
            status_code=409,
            detail="Cannot delete batch with existing enrollments. Please remove enrollments first.",
        )
    await db.batches.delete_one({"_id": batch["_id"]})
    logger.info(f"Deleted batch {batch_id}, current_user: {current_user.userId}")
    return {"message": "Batch deleted successfully"}
