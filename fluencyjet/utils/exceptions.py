"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger


class FluencyJetException(Exception):
    """Base exception for the application."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"ok": False, "code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInputError(FluencyJetException):
    """Malformed or missing request data."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_INPUT"


class InvalidAmountError(InvalidInputError):
    """XP amount is zero or not a number."""


class InvalidEventTypeError(InvalidInputError):
    """XP event type is not one of the known kinds (strict mode only)."""


class AuthenticationError(FluencyJetException):
    """Authentication errors."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class ForbiddenError(FluencyJetException):
    """Authenticated but not allowed."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class PaywallError(ForbiddenError):
    """Lesson requires a plan the user does not hold."""

    code = "PAYWALL"

    def __init__(self, message: str, *, free_lessons: Any, next_action: Dict[str, str]):
        super().__init__(message)
        self.free_lessons = free_lessons
        self.next_action = next_action

    def payload(self) -> Dict[str, Any]:
        return {
            "ok": False,
            "code": self.code,
            "message": self.message,
            "freeLessons": self.free_lessons,
            "nextAction": self.next_action,
        }


class NotFoundError(FluencyJetException):
    """Requested lesson, user or record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(FluencyJetException):
    """Unique resource already exists."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class StorageUnavailableError(FluencyJetException):
    """Database operation failed; the caller may retry."""

    code = "STORAGE_UNAVAILABLE"

    def payload(self) -> Dict[str, Any]:
        body = super().payload()
        body["retryable"] = True
        return body


async def fluencyjet_exception_handler(request: Request, exc: FluencyJetException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Validation failed on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "ok": False,
            "code": InvalidInputError.code,
            "message": "Validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "code": "INTERNAL_ERROR", "message": "Something went wrong. Please try again later."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on ``app``."""

    app.add_exception_handler(FluencyJetException, fluencyjet_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
