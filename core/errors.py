"""
Error taxonomy and the single terminal error classifier.

Every failure that reaches the HTTP layer is reduced to an ``ErrorResult``
(status, code, message, details) by ``classify_error`` and rendered as the
``ErrorEnvelope`` JSON body. Routes and services raise; only this module
writes error responses.
"""

import functools
import traceback
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from models.schemas import ErrorEnvelope, FieldErrorDetail
from utils.logging import get_logger

logger = get_logger(__name__)

GENERIC_SERVER_MESSAGE = "An unexpected error occurred"
DUPLICATE_KEY_CODE = 11000


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_TO_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMITED,
}


def _code_for_status(status_code: int) -> ErrorCode:
    # Unlisted 4xx (405, 413, ...) map to the client-error code
    if status_code in _STATUS_TO_CODE:
        return _STATUS_TO_CODE[status_code]
    if 400 <= status_code < 500:
        return ErrorCode.VALIDATION_ERROR
    return ErrorCode.INTERNAL_ERROR


class AppError(Exception):
    """Operational error with an explicit HTTP status and machine-readable code."""

    status_code: int = 500
    code: str = ErrorCode.INTERNAL_ERROR.value

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class UnauthorizedError(AppError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED.value


class ForbiddenError(AppError):
    status_code = 403
    code = ErrorCode.FORBIDDEN.value


class NotFoundError(AppError):
    status_code = 404
    code = ErrorCode.NOT_FOUND.value


class ConflictError(AppError):
    status_code = 409
    code = ErrorCode.CONFLICT.value


class DocumentValidationError(Exception):
    """Raised by the data layer when a record fails its schema rules.

    ``errors`` maps each offending field path to its message.
    """

    def __init__(self, errors: Mapping[str, str]):
        super().__init__("Validation failed")
        self.errors = dict(errors)


class CastError(Exception):
    """A value could not be cast to the type a path expects (e.g. a malformed id)."""

    def __init__(self, path: str, value: Any):
        super().__init__(f"Cast failed for {path}")
        self.path = path
        self.value = value


class DuplicateKeyError(Exception):
    """Unique index violation. ``key_value`` holds the colliding field(s)."""

    code = DUPLICATE_KEY_CODE

    def __init__(self, key_value: Mapping[str, Any]):
        super().__init__(f"Duplicate key: {dict(key_value)}")
        self.key_value = dict(key_value)


@dataclass(frozen=True)
class ErrorResult:
    status_code: int
    code: str
    message: str
    details: list[FieldErrorDetail] | None = field(default=None)


def _request_field(loc: tuple | list) -> str:
    # First loc item names the request part (body, query, path)
    parts = [str(p) for p in loc]
    return ".".join(parts[1:]) or ".".join(parts)


def _validation_details(exc: Exception) -> list[FieldErrorDetail] | None:
    if isinstance(exc, DocumentValidationError):
        return [FieldErrorDetail(field=path, message=msg) for path, msg in exc.errors.items()]
    if isinstance(exc, RequestValidationError):
        return [
            FieldErrorDetail(field=_request_field(err.get("loc", ())), message=err.get("msg", "Invalid value"))
            for err in exc.errors()
        ]
    if isinstance(exc, PydanticValidationError):
        return [
            FieldErrorDetail(field=".".join(str(p) for p in err["loc"]), message=err["msg"])
            for err in exc.errors()
        ]
    return None


def classify_error(exc: BaseException, *, production: bool = False) -> ErrorResult:
    """
    Map any exception to a stable (status, code, message, details) result.
    First matching rule wins; 500s are masked in production.
    """
    details = _validation_details(exc) if isinstance(exc, Exception) else None
    if details is not None:
        return ErrorResult(400, ErrorCode.VALIDATION_ERROR.value, "Validation failed", details)

    if isinstance(exc, CastError):
        return ErrorResult(400, ErrorCode.VALIDATION_ERROR.value, f"Invalid {exc.path}: {exc.value}")

    if getattr(exc, "code", None) == DUPLICATE_KEY_CODE:
        key_value = getattr(exc, "key_value", None) or {}
        field_name = next(iter(key_value), "value")
        return ErrorResult(409, ErrorCode.CONFLICT.value, f"{field_name} already exists")

    # ExpiredSignatureError subclasses JWTError, so it is checked first
    if isinstance(exc, ExpiredSignatureError):
        return ErrorResult(401, ErrorCode.UNAUTHORIZED.value, "Token expired")
    if isinstance(exc, JWTError):
        return ErrorResult(401, ErrorCode.UNAUTHORIZED.value, "Invalid token")

    if isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        code = _code_for_status(status_code).value
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    else:
        status_code = getattr(exc, "status_code", None)
        if not isinstance(status_code, int):
            status_code = 500
        code = getattr(exc, "code", None)
        if not isinstance(code, str) or not code:
            code = ErrorCode.INTERNAL_ERROR.value
        message = getattr(exc, "message", None) or str(exc) or "Internal Server Error"

    if status_code == 500 and production:
        message = GENERIC_SERVER_MESSAGE
    return ErrorResult(status_code, code, message)


def error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Render a classified error as the JSON envelope. Stack traces only outside production."""
    settings = get_settings()
    result = classify_error(exc, production=settings.is_production)
    envelope = ErrorEnvelope(error=result.message, code=result.code, details=result.details)

    log_extra = {
        "path": request.url.path,
        "method": request.method,
        "status": result.status_code,
        "code": result.code,
    }
    if result.status_code >= 500:
        logger.error("unhandled_exception", extra=log_extra, exc_info=exc)
    elif not settings.is_production:
        logger.info("request_error", extra={**log_extra, "error": str(exc)})

    if not settings.is_production:
        envelope.stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    headers = None
    if result.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, StarletteHTTPException) and exc.headers:
        headers = dict(exc.headers)
    return JSONResponse(status_code=result.status_code, content=envelope.to_content(), headers=headers)


def not_found_response(request: Request) -> JSONResponse:
    """404 for requests that matched no route."""
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    envelope = ErrorEnvelope(
        error=f"Route {request.method} {target} not found",
        code=ErrorCode.NOT_FOUND.value,
    )
    return JSONResponse(status_code=404, content=envelope.to_content())


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Router-level 404s carry no endpoint in scope
    if exc.status_code == 404 and "endpoint" not in request.scope:
        return not_found_response(request)
    return error_response(request, exc)


async def _handle_error(request: Request, exc: Exception) -> JSONResponse:
    return error_response(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Install the classifier as the app's only error writer."""
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    for exc_class in (
        RequestValidationError,
        PydanticValidationError,
        DocumentValidationError,
        CastError,
        DuplicateKeyError,
        JWTError,
        AppError,
    ):
        app.add_exception_handler(exc_class, _handle_error)
    # Anything else reaches Starlette's ServerErrorMiddleware, which re-raises after responding
    app.add_exception_handler(Exception, _handle_error)


def async_handler(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """
    Wrap an async route handler so any exception it raises is answered with the
    error envelope instead of propagating. The handler must accept a ``Request``.
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            request = next(
                (v for v in (*args, *kwargs.values()) if isinstance(v, Request)),
                None,
            )
            if request is None:
                raise
            return error_response(request, exc)

    return wrapper
