"""Request-level input validation.

Checks run before any storage I/O. Failures raise :class:`InputError`, whose
message is safe to show to end users ("Job ID is required").
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Optional, Type

from pydantic import EmailStr, StringConstraints, TypeAdapter, ValidationError

RequiredString = Annotated[str, StringConstraints(min_length=1)]

_required_string = TypeAdapter(RequiredString)
_email = TypeAdapter(EmailStr)


class InputError(ValueError):
    """Invalid or missing user input."""


def require(value: Any, label: str) -> str:
    """Return ``value`` if it is a non-empty string, else raise ``<label> is required``."""
    try:
        return _required_string.validate_python(value)
    except ValidationError:
        raise InputError(f"{label} is required") from None


@lru_cache(maxsize=None)
def _enum_adapter(enum_cls: Type[Enum]) -> TypeAdapter:
    return TypeAdapter(enum_cls)


def require_choice(value: Any, enum_cls: Type[Enum], label: str, noun: str) -> str:
    """Validate ``value`` against ``enum_cls`` and return the stored string value.

    Args:
        value: Raw input.
        enum_cls: The allowed values.
        label: Field label for the missing-value message ("Status").
        noun: Name used in the invalid-value message ("job status").
    """
    if value is None or value == "":
        raise InputError(f"{label} is required")
    try:
        return _enum_adapter(enum_cls).validate_python(value).value
    except ValidationError:
        raise InputError(f"Invalid {noun}: {value}") from None


def require_email(value: Any) -> str:
    """Validate an email address and return it lowercased."""
    require(value, "Email")
    try:
        return str(_email.validate_python(value.strip())).lower()
    except ValidationError:
        raise InputError("Invalid email address") from None


def require_text(value: Any, label: str, max_length: Optional[int] = None) -> str:
    """Like :func:`require`, but strips whitespace first and caps the length."""
    text = require(value.strip() if isinstance(value, str) else value, label)
    if max_length is not None and len(text) > max_length:
        raise InputError(f"{label} too long (max {max_length} characters)")
    return text
