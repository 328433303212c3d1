"""Map marketplace ActionResults onto HTTP responses."""

from fastapi import status
from fastapi.responses import JSONResponse

from localpro.results import ActionResult, ErrorCode

from .logging_config import log_action_event

STATUS_BY_CODE = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.STORE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status(result: ActionResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    return STATUS_BY_CODE.get(result.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def respond(
    result: ActionResult,
    action: str | None = None,
    actor_id: str | None = None,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Serialize the result envelope with the status its error code implies."""
    if action and actor_id:
        log_action_event(action, actor_id, result.success, None if result.success else result.error)
    code = success_status if result.success else http_status(result)
    return JSONResponse(status_code=code, content=result.to_dict())


def envelope_error(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)
