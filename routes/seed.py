# routes/seed.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from config import Settings, get_settings
from database import get_db
from services.seed import seed_database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/seed", tags=["seed"])


@router.post("")
async def seed(
    settings: Settings = Depends(get_settings),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if settings.is_production:
        logger.warning("Refused to seed database in production")
        return JSONResponse(
            status_code=403,
            content={"error": "Seeding is only allowed in development mode"},
        )

    try:
        result = await seed_database(db)
    except Exception as e:
        logger.error(f"Seed error: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to seed database", "details": str(e)},
        )
    return {"message": "Database seeded successfully", "data": result}
