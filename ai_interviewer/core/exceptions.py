from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

logger = structlog.get_logger(__name__)


class InterviewError(Exception):
    """
    Base class for every error raised by the interviewer.

    Attributes:
        code: Short machine-readable identifier (e.g. 'NOT_FOUND')
        message: Human readable message, safe to show to the caller
        details: Optional extra context for logs
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


class ValidationError(InterviewError):
    """Malformed client payload."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="VALIDATION_ERROR", message=message, details=details)


class NotFoundError(InterviewError):
    """Unknown session identifier."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Session not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(code="NOT_FOUND", message=message, details=details)


class InvalidStateError(InterviewError):
    """Mutation attempted on a session that no longer accepts it."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Session completed", details: Optional[Dict[str, Any]] = None):
        super().__init__(code="INVALID_STATE", message=message, details=details)


class UpstreamProviderError(InterviewError):
    """
    Generative backend unreachable or returned unusable output.
    Always absorbed by the question and evaluation fallbacks.
    """
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="UPSTREAM_ERROR", message=message, details=details)


class StorageError(InterviewError):
    """Session store unreachable or failed to persist."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="STORAGE_ERROR", message=message, details=details)


INTERNAL_ERROR_MESSAGE = "Internal server error"


async def interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:
    if exc.status_code >= 500:
        # server-side detail stays in the logs
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content={"error": INTERNAL_ERROR_MESSAGE})

    logger.info("request_rejected", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, code="VALIDATION_ERROR", errors=len(exc.errors()))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request payload"})


async def catch_unhandled_errors(request: Request, call_next) -> Response:
    """
    Turn any exception that escaped the handlers into a generic 500.
    Runs inside the server error middleware, so the debug traceback page is never served.
    """
    try:
        return await call_next(request)
    except Exception:
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_ERROR_MESSAGE}
        )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InterviewError, interview_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.middleware("http")(catch_unhandled_errors)
