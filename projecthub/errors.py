"""
Typed application errors and their translation to HTTP responses.

Services raise these; the exception handlers registered by
``register_exception_handlers`` are the only place they become status codes.
"""
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = structlog.get_logger(__name__)

ERROR_CODE_TO_STATUS = {
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "CONFLICT": 409,
    "UNEXPECTED_ERROR": 500,
}


class AppError(Exception):
    code = "UNEXPECTED_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details

    @property
    def status_code(self) -> int:
        return ERROR_CODE_TO_STATUS.get(self.code, 500)


class AuthenticationError(AppError):
    code = "UNAUTHORIZED"


class AuthorizationError(AppError):
    """The acting user lacks permission for the requested change."""

    code = "FORBIDDEN"


class NotFoundError(AppError):
    code = "NOT_FOUND"


class ValidationError(AppError):
    code = "VALIDATION_ERROR"


class ConflictError(AppError):
    code = "CONFLICT"


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("app_error", code=exc.code, error=exc.message, path=request.url.path)
    else:
        logger.info("request_rejected", code=exc.code, error=exc.message, path=request.url.path)
    body = {"detail": exc.message, "code": exc.code}
    if exc.details is not None:
        body["errors"] = jsonable_encoder(exc.details)
    return JSONResponse(status_code=exc.status_code, content=body)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Input validation failed",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred.", "code": "UNEXPECTED_ERROR"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
