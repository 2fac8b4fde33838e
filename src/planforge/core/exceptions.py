"""Error taxonomy and exception handlers with request_id in responses."""

from enum import Enum

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.planforge.core.logging import get_logger

logger = get_logger(__name__)


class ErrorKind(str, Enum):
    """Kinds of failure that may cross the core boundary."""

    NOT_FOUND = "NotFound"
    INVALID_STATE = "InvalidState"
    INVALID_TRANSITION = "InvalidTransition"
    EMPTY_INPUT = "EmptyInput"
    EMPTY_OUTPUT = "EmptyOutput"
    GENERATOR_UNAVAILABLE = "GeneratorUnavailable"
    TIMEOUT = "Timeout"
    CANCELLED = "Cancelled"
    ALREADY_RUNNING = "AlreadyRunning"
    TRANSIENT = "TransientError"
    PERMANENT = "PermanentError"


class PlanForgeError(Exception):
    """Base class for every error the core surfaces to callers."""

    kind: ErrorKind = ErrorKind.PERMANENT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class NotFoundError(PlanForgeError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(PlanForgeError):
    kind = ErrorKind.INVALID_STATE


class ConflictError(InvalidStateError):
    """A conditional write matched no row because the row changed underneath it."""


class InvalidTransitionError(PlanForgeError):
    kind = ErrorKind.INVALID_TRANSITION


class EmptyInputError(PlanForgeError):
    kind = ErrorKind.EMPTY_INPUT


class EmptyOutputError(PlanForgeError):
    kind = ErrorKind.EMPTY_OUTPUT


class GeneratorUnavailableError(PlanForgeError):
    kind = ErrorKind.GENERATOR_UNAVAILABLE


class PipelineTimeoutError(PlanForgeError):
    kind = ErrorKind.TIMEOUT


class PipelineCancelledError(PlanForgeError):
    kind = ErrorKind.CANCELLED


class AlreadyRunningError(PlanForgeError):
    kind = ErrorKind.ALREADY_RUNNING


class TransientError(PlanForgeError):
    """Recoverable engine or network failure; safe to retry."""

    kind = ErrorKind.TRANSIENT


class PermanentError(PlanForgeError):
    """Schema, constraint or logic failure; retrying will not help."""

    kind = ErrorKind.PERMANENT


ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.ALREADY_RUNNING: 409,
    ErrorKind.EMPTY_INPUT: 422,
    ErrorKind.EMPTY_OUTPUT: 422,
    ErrorKind.GENERATOR_UNAVAILABLE: 503,
    ErrorKind.TRANSIENT: 503,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CANCELLED: 499,
    ErrorKind.PERMANENT: 500,
}


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(PlanForgeError)
    async def planforge_exception_handler(request: Request, exc: PlanForgeError) -> JSONResponse:
        status_code = ERROR_STATUS_CODES.get(exc.kind, 500)
        if status_code >= 500:
            logger.warning(
                "Request failed",
                kind=exc.kind.value,
                error=exc.message,
                path=request.url.path,
            )
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": exc.message,
                "kind": exc.kind.value,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
