# errors.py
import logging
from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from pymongo.errors import ConnectionFailure, DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from models.common import field_errors, format_details

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "Service temporarily unavailable. Please try again later."


class AuthenticationError(Exception):
    """Missing, malformed or expired session token."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
        self.message = message


class AuthorizationError(Exception):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)
        self.message = message


class InputValidationError(Exception):
    """Validation failure for input checked outside FastAPI's own body parsing."""

    def __init__(self, errors):
        super().__init__(format_details(errors))
        self.errors = errors


class PageRedirect(Exception):
    """Raised by page guards; turned into a redirect instead of a JSON error."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


def error_response(status_code: int, error: str, details=None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def validation_error_handler(request: Request, exc):
    details = format_details(field_errors(exc.errors()))
    logger.info(f"Validation failed on {request.method} {request.url.path}: {details}")
    return error_response(400, "Validation failed", details)


async def input_validation_error_handler(request: Request, exc: InputValidationError):
    return error_response(400, "Validation failed", format_details(exc.errors))


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return error_response(401, exc.message)


async def authorization_error_handler(request: Request, exc: AuthorizationError):
    return error_response(403, exc.message)


async def page_redirect_handler(request: Request, exc: PageRedirect):
    return RedirectResponse(exc.location, status_code=303)


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    details = exc.details or {}
    key = details.get("keyPattern") or details.get("keyValue") or {}
    duplicate_field = next(iter(key), "field")
    return error_response(
        409,
        f"Duplicate entry: {duplicate_field} already exists",
        f"A record with this {duplicate_field} already exists.",
    )


async def invalid_id_handler(request: Request, exc: InvalidId):
    return error_response(400, "Invalid ID format", str(exc))


async def database_unavailable_handler(request: Request, exc: ConnectionFailure):
    logger.error(f"Database connection error on {request.method} {request.url.path}: {str(exc)}")
    return error_response(503, SERVICE_UNAVAILABLE)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(InputValidationError, input_validation_error_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(AuthorizationError, authorization_error_handler)
    app.add_exception_handler(PageRedirect, page_redirect_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(ConnectionFailure, database_unavailable_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
