"""Map client error codes to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.clients.errors import ClientError, ErrorCode, ValidationFailed
from src.core.config import settings
from src.core.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.MISSING_VARIANT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.AMBIGUOUS_VARIANT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VARIANT_IMMUTABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.STORE_TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.TRANSACTION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

RETRY_AFTER_SECONDS = 1


def status_for_error_code(code: ErrorCode) -> int:
    """Resolve an error code to an HTTP status, defaulting to 500."""
    return ERROR_CODE_TO_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    """Render a ClientError as {code, detail, errors}."""
    status_code = status_for_error_code(exc.code)
    content: dict[str, object] = {"code": exc.code.value, "detail": str(exc)}
    if isinstance(exc, ValidationFailed):
        content["errors"] = [error.to_dict() for error in exc.errors]

    headers: dict[str, str] = {}
    if exc.retryable:
        headers["Retry-After"] = str(RETRY_AFTER_SECONDS)

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("client_operation_failed", code=exc.code.value, path=request.url.path)
        if not settings.debug:
            content["detail"] = "The operation could not be completed."
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Install the ClientError handler on an application."""
    app.add_exception_handler(ClientError, client_error_handler)  # type: ignore[arg-type]
