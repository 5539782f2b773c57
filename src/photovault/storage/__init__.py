"""Object storage: path resolution, upload grants and streaming delivery."""

from .errors import (
    ObjectDeliveryError,
    ObjectForbiddenError,
    ObjectNotFoundError,
    ObjectStorageError,
    PolicyConflictError,
    StorageConfigurationError,
    UploadGrantExpiredError,
)

__all__ = [
    "ObjectDeliveryError",
    "ObjectForbiddenError",
    "ObjectNotFoundError",
    "ObjectStorageError",
    "PolicyConflictError",
    "StorageConfigurationError",
    "UploadGrantExpiredError",
]
