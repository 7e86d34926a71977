# models/common.py
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Generic, List, Literal, TypeVar, Union

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, HttpUrl, TypeAdapter, ValidationError, field_validator

T = TypeVar("T")

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")

_http_url = TypeAdapter(HttpUrl)


def object_id(message: str = "Invalid ID", required: str = None):
    """Build a 24-hex-character id type with its own error message.

    When ``required`` is given an empty string fails with that message first.
    """

    def check(value: str) -> str:
        if required and not value:
            raise ValueError(required)
        if not OBJECT_ID_RE.match(value):
            raise ValueError(message)
        return value

    return Annotated[str, AfterValidator(check)]


def url_or_empty(message: str = "Invalid URL"):
    def check(value: str) -> str:
        if value == "":
            return value
        try:
            _http_url.validate_python(value)
        except ValidationError:
            raise ValueError(message)
        return value

    return Annotated[str, AfterValidator(check)]


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email address")
    return value


ObjectIdStr = object_id()
Email = Annotated[str, AfterValidator(_check_email)]


@dataclass
class FieldError:
    path: str
    message: str


@dataclass
class ValidationSuccess(Generic[T]):
    value: T
    ok: Literal[True] = True


@dataclass
class ValidationFailure:
    errors: List[FieldError] = field(default_factory=list)
    ok: Literal[False] = False

    @property
    def details(self) -> str:
        return format_details(self.errors)


ValidationResult = Union[ValidationSuccess, ValidationFailure]

# FastAPI prefixes locations with where the value came from
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def field_errors(errors) -> List[FieldError]:
    """Flatten pydantic error dicts into FieldError entries."""
    result = []
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        if err.get("type") == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        else:
            message = err.get("msg", "Invalid value")
        result.append(FieldError(path=".".join(str(part) for part in loc), message=message))
    return result


def format_details(errors: List[FieldError]) -> str:
    return ", ".join(f"{e.path}: {e.message}" if e.path else e.message for e in errors)


def validate(schema: Any, data: Any) -> ValidationResult:
    """Validate ``data`` against a model or annotated type without raising."""
    try:
        return ValidationSuccess(TypeAdapter(schema).validate_python(data))
    except ValidationError as e:
        return ValidationFailure(field_errors(e.errors()))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def to_object_id(value) -> ObjectId:
    # raises bson.errors.InvalidId, mapped to a 400 by the error handlers
    return value if isinstance(value, ObjectId) else ObjectId(value)


def serialize(value: Any) -> Any:
    """Make a Mongo document JSON friendly: ObjectIds to str, datetimes to ISO."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items() if k != "password"}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


class PartialUpdate(BaseModel):
    """Base for update bodies: fields may be omitted but never sent as null."""

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
