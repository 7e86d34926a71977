# routes/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timezone

from database import check_database_health, get_db

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    database = await check_database_health(db)
    healthy = database["isConnected"]
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {"database": database},
        },
    )
