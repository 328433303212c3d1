"""Uniform result envelope returned by every marketplace action."""

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from localpro.validation import InputError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Failure categories, used by the HTTP layer to pick a status code."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    STORE = "store"


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


@dataclass
class ActionResult(Generic[T]):
    """``{success, data?, error?, message?}`` plus an internal error code."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, message: Optional[str] = None) -> "ActionResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(
        cls,
        error: str,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.STORE,
        data: Optional[T] = None,
    ) -> "ActionResult[T]":
        return cls(success=False, error=error, message=message, code=code, data=data)

    @classmethod
    def from_exception(cls, exc: BaseException, fallback: str, message: str) -> "ActionResult[T]":
        """Normalize a store exception: its text if it has one, else the fallback."""
        return cls.fail(str(exc) or fallback, message=message, code=ErrorCode.STORE)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire envelope, omitting unset fields."""
        out: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = _serialize(self.data)
        if self.error is not None:
            out["error"] = self.error
        if self.message is not None:
            out["message"] = self.message
        return out


def action(message: str, fallback: str) -> Callable:
    """Wrap a service method so expected failures become ``ActionResult`` values.

    ``InputError`` maps to a validation failure; any other exception is logged
    and normalized with ``fallback`` as the error when it carries no text.
    ``message`` is the context-specific failure message in both cases.
    """

    def decorator(func: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> ActionResult:
            try:
                return func(*args, **kwargs)
            except InputError as e:
                return ActionResult.fail(str(e), message=message, code=ErrorCode.VALIDATION)
            except Exception as e:
                logger.exception(f"{func.__qualname__} failed: {e}")
                return ActionResult.from_exception(e, fallback, message)

        return wrapper

    return decorator
