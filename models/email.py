# models/email.py
from pydantic import BaseModel, Field
from typing import Optional

from .common import url_or_empty


class SendEmail(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    actionUrl: Optional[url_or_empty("Invalid URL")] = None
    actionText: Optional[str] = Field(None, max_length=50)
