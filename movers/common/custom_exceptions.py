from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from movers import logger
from movers.common.utils import build_error, json_error
from movers.common.constants import request_id_ctx


class AppError(Exception):
    """Base for failures that are part of a handler's contract.

    ``message`` becomes the ``error`` field of the response body, ``extra`` is merged
    into the body (e.g. ``{"valid": False}``) and ``headers`` are set on the response.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: Optional[int] = None,
                 extra: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = dict(extra or {})
        self.headers = headers


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, *, retry_after: Optional[int] = None, **kwargs):
        if retry_after is not None:
            kwargs["headers"] = {**(kwargs.get("headers") or {}), "Retry-After": str(retry_after)}
        super().__init__(message, **kwargs)


class StateError(AppError):
    """Business outcome of a stored record's state (expired, exhausted, ...)."""
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY


class ConfigurationError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    @classmethod
    def for_missing(cls, what: str, names: Iterable[str], **kwargs) -> "ConfigurationError":
        return cls(f"{what} env missing: {', '.join(names)}", **kwargs)


async def app_error_handler(request: Request, exc: AppError):
    rid = request_id_ctx.get(None)
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request.failed",
        extra={
            "path": request.url.path,
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
            "reason": exc.message,
            "request_id": rid,
        },
    )
    return json_error(build_error(exc.message, exc.extra), status_code=exc.status_code, headers=exc.headers)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "request_id": rid,
        },
        exc_info=exc,
    )

    return json_error(build_error("Internal Server Error"), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": exc.errors(),
            "path": request.url.path,
            "request_id": rid,
        },
    )

    return json_error(build_error("invalid request"), status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):
    return json_error(build_error(str(exc.detail)), status_code=exc.status_code,
                      headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        AppError,
        app_error_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        StarletteHTTPException,
        http_exception_handler
    )
