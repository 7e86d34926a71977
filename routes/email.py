# routes/email.py
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from database import get_db
from models.common import to_object_id
from models.email import SendEmail
from models.user import TokenPayload
from services.email import send_custom_email
from .auth import require_auth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["email"])


@router.post("/send")
async def send(
    request: SendEmail,
    current_user: TokenPayload = Depends(require_auth),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await db.users.find_one({"_id": to_object_id(current_user.userId)})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        await send_custom_email(
            user["name"],
            user["email"],
            request.subject,
            request.message,
            action_url=request.actionUrl or None,
            action_text=request.actionText,
        )
    except OSError as e:
        # smtplib errors are OSErrors
        logger.error(f"Failed to send email to {user['email']}: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to send email", "details": str(e)},
        )
    return {"message": "Email sent successfully", "data": {"to": user["email"], "subject": request.subject}}
