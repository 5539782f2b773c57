"""Typed failures raised by the object storage core."""

from __future__ import annotations

__all__ = [
    "ObjectStorageError",
    "ObjectNotFoundError",
    "ObjectForbiddenError",
    "StorageConfigurationError",
    "PolicyConflictError",
    "UploadGrantExpiredError",
    "ObjectDeliveryError",
]


class ObjectStorageError(Exception):
    """Base class for object storage failures."""


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object or its storage location is absent."""

    def __init__(self, message: str = "Object not found") -> None:
        super().__init__(message)


class ObjectForbiddenError(ObjectStorageError):
    """Raised when the access check or a write capability is rejected."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class StorageConfigurationError(ObjectStorageError):
    """Raised when a required storage root or secret is not configured."""


class PolicyConflictError(ObjectStorageError):
    """Raised on an attempt to redefine an already registered object."""


class UploadGrantExpiredError(ObjectStorageError):
    """Raised when an upload grant is used after its validity window."""


class ObjectDeliveryError(ObjectStorageError):
    """Raised when stored bytes cannot be opened before the response starts."""
