"""Exception handlers that normalise every error to one JSON envelope."""

from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rfpdesk.core.config import get_config
from rfpdesk.core.exceptions import (
    AiError,
    AiRateLimitError,
    ConflictError,
    NotFoundError,
    RFPDeskException,
    TransportError,
    ValidationError,
)
from rfpdesk.schemas.common import ErrorEnvelope

logger = logging.getLogger(__name__)

AI_UNAVAILABLE_MESSAGE = "AI service is temporarily unavailable. Please try again later."
AI_RATE_LIMITED_MESSAGE = "AI service is receiving too many requests. Please wait a moment and try again."
EMAIL_UNAVAILABLE_MESSAGE = "Email service is temporarily unavailable. Please try again later."
DATABASE_UNAVAILABLE_MESSAGE = "Database service is temporarily unavailable. Please try again later."
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred."


def _envelope(request: Request, status_code: int, message: str | list, exc: BaseException | None = None) -> JSONResponse:
    config = get_config()
    body = ErrorEnvelope(
        statusCode=status_code,
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        error=HTTPStatus(status_code).phrase,
        message=message,
    )
    if exc is not None and config.is_development and config.DEBUG:
        body.stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _domain_status(exc: RFPDeskException) -> tuple[int, str]:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT, str(exc)
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST, str(exc)
    if isinstance(exc, AiRateLimitError) or isinstance(exc.__cause__, AiRateLimitError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, AI_RATE_LIMITED_MESSAGE
    if isinstance(exc, AiError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, AI_UNAVAILABLE_MESSAGE
    if isinstance(exc, TransportError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, EMAIL_UNAVAILABLE_MESSAGE
    return status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE


async def domain_error_handler(request: Request, exc: RFPDeskException) -> JSONResponse:
    status_code, message = _domain_status(exc)
    if status_code >= 500:
        logger.error(
            "http.domain_error",
            extra={"event": "http.domain_error", "path": request.url.path, "error": exc.__class__.__name__},
        )
    return _envelope(request, status_code, message, exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(request, exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in exc.errors()
    ]
    return _envelope(request, status.HTTP_422_UNPROCESSABLE_ENTITY, messages)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("http.database_error", extra={"event": "http.database_error", "path": request.url.path})
    return _envelope(request, status.HTTP_503_SERVICE_UNAVAILABLE, DATABASE_UNAVAILABLE_MESSAGE, exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("http.unhandled_error", extra={"event": "http.unhandled_error", "path": request.url.path})
    return _envelope(request, status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RFPDeskException, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
