# models/user.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, Optional

from .common import Email

UserRole = Literal["student", "admin"]


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: Email
    password: str = Field(..., min_length=6)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=1)


class AdminLoginRequest(LoginRequest):
    adminSecretKey: str = Field(..., min_length=1)


class User(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    email: str
    role: UserRole = "student"
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class TokenPayload(BaseModel):
    userId: str
    email: str
    role: UserRole
