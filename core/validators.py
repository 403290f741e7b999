# core/validators.py

from typing import Iterable

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError


PLANS = ("monthly", "yearly")

# Same validator request bodies get through their EmailStr fields.
_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def validate_email(value: str) -> str:
    """
    Validates with email-validator and returns the address lowercased.
    Request bodies are already checked by EmailStr; services call this
    for inputs that arrive any other way.
    """
    email = normalize_email(value)
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        raise ValidationError("Invalid email format")
    return email


def is_email_error(error: dict) -> bool:
    """True for a RequestValidationError entry raised by an EmailStr field."""
    return (
        error.get("type") == "value_error"
        and "email address" in str(error.get("msg", ""))
    )


def require_fields(payload: dict, names: Iterable[str]) -> None:
    """Every name must map to a non-blank value."""
    names = list(names)
    missing = [
        n for n in names
        if payload.get(n) is None or (isinstance(payload.get(n), str) and not payload[n].strip())
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields. Required: {', '.join(names)}"
        )


def validate_plan(plan: str) -> str:
    if plan not in PLANS:
        raise ValidationError('Invalid plan. Must be "monthly" or "yearly"')
    return plan
