"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sanga.domain.connections.exceptions import (
    DuplicateRelationshipError,
    RequestForbiddenError,
    RequestNotFoundError,
    RequestRateLimitExceeded,
)
from sanga.domain.notifications.exceptions import NotificationNotFoundError
from sanga.infra.store import InvalidKeyError
from sanga.obs import logging as obs_logging


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None) or obs_logging.current_request_id()
    return rid or "unknown"


def status_for(exc: Exception) -> int:
    if isinstance(exc, RequestRateLimitExceeded):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(exc, DuplicateRelationshipError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, RequestForbiddenError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, (RequestNotFoundError, NotificationNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        payload = {"detail": exc.detail, "request_id": _request_id(request)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {"detail": "validation_error", "errors": exc.errors(), "request_id": _request_id(request)}
        return JSONResponse(status_code=422, content=jsonable_encoder(payload))

    @app.exception_handler(InvalidKeyError)
    async def invalid_key_handler(request: Request, exc: InvalidKeyError):  # type: ignore[override]
        payload = {"detail": exc.reason, "request_id": _request_id(request)}
        return JSONResponse(status_code=422, content=payload)


def map_domain_error(exc: Exception) -> HTTPException:
    return HTTPException(status_for(exc), detail=getattr(exc, "reason", None) or str(exc))
