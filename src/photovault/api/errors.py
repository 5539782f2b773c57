"""Reusable error primitives for API exception handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..storage.errors import (
    ObjectDeliveryError,
    ObjectForbiddenError,
    ObjectNotFoundError,
    ObjectStorageError,
    PolicyConflictError,
    StorageConfigurationError,
    UploadGrantExpiredError,
)

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    code: str
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into a ``JSONResponse`` instance."""

        return JSONResponse(
            status_code=self.status_code,
            content={"error": {"code": self.code, "message": self.message}},
            headers=dict(self.headers or {}),
        )


# Messages are fixed per kind so physical paths never leak to clients.
_STORAGE_ERRORS: tuple[tuple[type[ObjectStorageError], int, str, str], ...] = (
    (ObjectNotFoundError, status.HTTP_404_NOT_FOUND, "not_found", "Object not found"),
    (ObjectForbiddenError, status.HTTP_403_FORBIDDEN, "forbidden", "Access denied"),
    (
        PolicyConflictError,
        status.HTTP_409_CONFLICT,
        "conflict",
        "Object is already registered with a different policy",
    ),
    (UploadGrantExpiredError, status.HTTP_410_GONE, "grant_expired", "Upload grant expired"),
    (
        StorageConfigurationError,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "storage_misconfigured",
        "Object storage is not configured",
    ),
    (
        ObjectDeliveryError,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "delivery_failed",
        "Error downloading file",
    ),
)


def storage_error_to_api_error(exc: ObjectStorageError) -> ApiError:
    """Map a storage failure to its stable outward status."""

    for kind, status_code, code, message in _STORAGE_ERRORS:
        if isinstance(exc, kind):
            return ApiError(status_code, code, message)
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_error", "Object storage failure")


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response()


async def storage_error_handler(request: Request, exc: ObjectStorageError) -> JSONResponse:
    """Translate core storage errors; configuration problems are logged for operators."""

    if isinstance(exc, StorageConfigurationError):
        logger.error("objects.storage.misconfigured", path=request.url.path, error=str(exc))
    return storage_error_to_api_error(exc).to_response()


def unauthorized_error(message: str) -> ApiError:
    """Return an :class:`ApiError` representing an authentication failure."""

    return ApiError(
        status.HTTP_401_UNAUTHORIZED,
        "unauthorized",
        message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ObjectStorageError, storage_error_handler)  # type: ignore[arg-type]


__all__ = [
    "ApiError",
    "api_error_handler",
    "register_error_handlers",
    "storage_error_handler",
    "storage_error_to_api_error",
    "unauthorized_error",
]
