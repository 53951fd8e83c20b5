"""
Request body schemas.

Every input contract is a pydantic model. `parse_payload()` is the only entry
point route handlers use: it returns either a validated model or a list of
"field: message" strings, never both.
"""

from datetime import date as date_type
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, EmailStr, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic_core import PydanticCustomError

EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6

ModelT = TypeVar("ModelT", bound=BaseModel)

_http_url = TypeAdapter(HttpUrl)

# Column widths in schema.sql
_MAX_LENGTHS = {"title": 255, "time": 20, "location": 255}


def _required_text(value: Any, label: str, max_length: Optional[int] = None) -> str:
    if value is None:
        raise PydanticCustomError("missing", f"{label} is required")
    if not isinstance(value, str):
        raise PydanticCustomError("string_type", f"{label} must be a string")
    value = value.strip()
    if not value:
        raise PydanticCustomError("missing", f"{label} is required")
    if max_length is not None and len(value) > max_length:
        raise PydanticCustomError("string_too_long", f"{label} must be at most {max_length} characters")
    return value


class AuthPayload(BaseModel):
    """Body of the signup and signin routes for both principal kinds."""

    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def check_email_length(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not EMAIL_MIN_LENGTH <= len(value) <= EMAIL_MAX_LENGTH:
                raise PydanticCustomError(
                    "email_length",
                    f"Email must be between {EMAIL_MIN_LENGTH} and {EMAIL_MAX_LENGTH} characters",
                )
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
            )
        return value


class EventPayload(BaseModel):
    """
    Body of create-event and edit-event.

    imageUrl / videoUrl keep the caller's exact string once it has been
    checked as an http(s) URL; blank strings count as absent.
    """

    title: str = Field(None, validate_default=True)
    description: Optional[str] = None
    date: str = Field(None, validate_default=True)
    time: str = Field(None, validate_default=True)
    location: str = Field(None, validate_default=True)
    imageUrl: Optional[str] = None
    videoUrl: Optional[str] = None

    @field_validator("title", "time", "location", mode="before")
    @classmethod
    def check_required_text(cls, value: Any, info) -> str:
        return _required_text(value, info.field_name.capitalize(), _MAX_LENGTHS[info.field_name])

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, value: Any) -> str:
        value = _required_text(value, "Date")
        try:
            date_type.fromisoformat(value)
        except ValueError:
            raise PydanticCustomError("date_format", "Date must be formatted as YYYY-MM-DD")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("imageUrl", "videoUrl", mode="before")
    @classmethod
    def check_url(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise PydanticCustomError("url_type", "Must be a URL string")
        value = value.strip()
        if not value:
            return None
        try:
            _http_url.validate_python(value)
        except ValidationError:
            raise PydanticCustomError("url_parsing", "Invalid url")
        return value


def format_errors(exc: ValidationError) -> List[str]:
    """Flatten a pydantic error into "field: message" strings."""
    messages = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"]) or "body"
        messages.append(f"{loc}: {error['msg']}")
    return messages


def parse_payload(model: Type[ModelT], data: Any) -> Tuple[Optional[ModelT], List[str]]:
    """
    Validate a decoded JSON body against `model`.

    Args:
        model: The schema class, e.g. AuthPayload.
        data: Whatever `request.get_json()` produced (may be None).

    Returns:
        tuple: (instance, []) on success, (None, errors) on failure.
    """
    try:
        return model.model_validate(data if data is not None else {}), []
    except ValidationError as exc:
        return None, format_errors(exc)
