# routes/auth.py
from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from jose import JWTError, jwt
from pydantic import ValidationError
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
import hmac
import logging

from config import settings
from database import get_db
from errors import AuthenticationError, AuthorizationError, PageRedirect
from models.common import serialize, to_object_id
from models.user import AdminLoginRequest, LoginRequest, RegisterRequest, TokenPayload, User
from services.email import send_welcome_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

TOKEN_COOKIE = "token"
BCRYPT_ROUNDS = 12


@dataclass(frozen=True)
class CookieDirective:
    name: str
    value: str
    httponly: bool
    secure: bool
    samesite: str
    path: str
    max_age: int


# ---- passwords ----

def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


# ---- tokens ----

def _jwt_secret() -> str:
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not configured")
    return settings.JWT_SECRET


def generate_token(payload: TokenPayload) -> str:
    now = datetime.now(timezone.utc)
    claims = payload.model_dump()
    claims["iat"] = now
    claims["exp"] = now + timedelta(seconds=settings.JWT_EXPIRES_IN)
    return jwt.encode(claims, _jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def verify_token(token: Optional[str]) -> TokenPayload:
    """Decode a session token, raising AuthenticationError when it is unusable."""
    if not token:
        raise AuthenticationError("Unauthorized")
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured; rejecting session token")
        raise AuthenticationError("Invalid or expired token")
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return TokenPayload(**claims)
    except (JWTError, ValidationError):
        raise AuthenticationError("Invalid or expired token")


def get_token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


# ---- cookies ----

def set_token_cookie(token: str) -> CookieDirective:
    return CookieDirective(
        name=TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
        max_age=settings.JWT_EXPIRES_IN,
    )


def clear_token_cookie() -> CookieDirective:
    return CookieDirective(
        name=TOKEN_COOKIE,
        value="",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
        max_age=0,
    )


def apply_cookie(response, cookie: CookieDirective):
    response.set_cookie(
        key=cookie.name,
        value=cookie.value,
        max_age=cookie.max_age,
        path=cookie.path,
        secure=cookie.secure,
        httponly=cookie.httponly,
        samesite=cookie.samesite,
    )
    return response


# ---- guards ----

def require_user(role: Optional[str] = None):
    """Dependency for API routes: 401 without a usable token, 403 on role mismatch."""

    async def dependency(request: Request) -> TokenPayload:
        user = verify_token(get_token_from_request(request))
        if role and user.role != role:
            logger.warning(f"User {user.userId} with role {user.role} denied {request.url.path}")
            raise AuthorizationError(f"Forbidden. {role} role required.")
        return user

    return dependency


def require_page_user(role: Optional[str] = None):
    """Dependency for pages: redirects instead of answering with an error body.

    Unauthenticated visitors go to the login surface for the role, users with the
    wrong role go to the surface they are allowed to see.
    """
    login_page = "/admin-login" if role == "admin" else "/login"
    fallback_page = "/dashboard" if role == "admin" else "/"

    async def dependency(request: Request) -> TokenPayload:
        try:
            user = verify_token(get_token_from_request(request))
        except AuthenticationError:
            raise PageRedirect(login_page)
        if role and user.role != role:
            raise PageRedirect(fallback_page)
        return user

    return dependency


def get_optional_user(request: Request) -> Optional[TokenPayload]:
    """Current user for routes that are public but vary by role."""
    try:
        return verify_token(get_token_from_request(request))
    except AuthenticationError:
        return None


require_auth = require_user()
require_student = require_user("student")
require_admin = require_user("admin")


# ---- endpoints ----

def public_user(user: dict) -> dict:
    return User.model_validate(serialize(user)).model_dump(by_alias=True, mode="json")


def _auth_response(user: dict, message: str, status_code: int = 200) -> JSONResponse:
    token = generate_token(TokenPayload(userId=str(user["_id"]), email=user["email"], role=user["role"]))
    response = JSONResponse(
        status_code=status_code,
        content={"message": message, "user": public_user(user), "token": token},
    )
    return apply_cookie(response, set_token_cookie(token))


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    logger.info(f"Registration attempt for email: {request.email}")
    if await db.users.find_one({"email": request.email}):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    now = datetime.utcnow()
    user = {
        "name": request.name,
        "email": request.email,
        "password": hash_password(request.password),
        "role": "student",
        "createdAt": now,
        "updatedAt": now,
    }
    result = await db.users.insert_one(user)
    user["_id"] = result.inserted_id
    logger.info(f"Registration successful: {user['_id']}")

    # email failure must not break registration
    background_tasks.add_task(send_welcome_email, user["name"], user["email"])
    return _auth_response(user, "Registration successful", status_code=201)


@router.post("/login")
async def login(request: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    logger.info(f"Login attempt for email: {request.email}")
    user = await db.users.find_one({"email": request.email})
    if not user or not verify_password(request.password, user.get("password")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _auth_response(user, "Login successful")


@router.post("/admin-login")
async def admin_login(request: AdminLoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    logger.info(f"Admin login attempt for email: {request.email}")
    if not settings.ADMIN_SECRET_KEY or not hmac.compare_digest(
        request.adminSecretKey.encode("utf-8"), settings.ADMIN_SECRET_KEY.encode("utf-8")
    ):
        raise HTTPException(status_code=401, detail="Invalid admin secret key")

    user = await db.users.find_one({"email": request.email})
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    if not verify_password(request.password, user.get("password")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _auth_response(user, "Admin login successful")


@router.post("/logout")
async def logout():
    try:
        response = JSONResponse(status_code=200, content={"message": "Logout successful"})
        return apply_cookie(response, clear_token_cookie())
    except Exception as e:
        logger.error(f"Logout error: {str(e)}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/me")
async def get_current_user_endpoint(
    current_user: TokenPayload = Depends(require_auth),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await db.users.find_one({"_id": to_object_id(current_user.userId)})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return public_user(user)
