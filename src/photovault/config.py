"""Storage configuration for PhotoVault.

Values come from environment variables prefixed with ``PHOTOVAULT_``. The
private object directory is optional at startup: the core reports a
:class:`~photovault.storage.errors.StorageConfigurationError` on first use
instead, so that read-only deployments serving public roots can still boot.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB


class StorageSettings(BaseSettings):
    """Pydantic settings container for the object storage core."""

    model_config = SettingsConfigDict(env_prefix="PHOTOVAULT_")

    private_object_dir: Path | None = Field(
        default=None,
        description="Root directory for private objects (uploads live beneath it).",
    )
    public_object_search_paths: str = Field(
        default="",
        description="Comma separated, ordered list of public search roots.",
    )
    upload_base_url: str | None = Field(
        default=None,
        description="External base URL; when set, upload grants are signed URLs.",
    )
    upload_grant_ttl_seconds: int = Field(
        default=900,
        ge=1,
        description="Validity window of an upload grant in seconds.",
    )
    signing_key: str = Field(
        default="change-me",
        min_length=1,
        description="HS256 secret for upload grant tokens and requester tokens.",
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="max-age advertised in Cache-Control for delivered objects.",
    )
    chunk_size_bytes: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        ge=1,
        description="Read/write chunk size for streaming transfers.",
    )
    database_url: str = Field(
        default="sqlite:///photovault.db",
        description="SQLAlchemy URL for ACL policies and the upload grant ledger.",
    )

    @field_validator("private_object_dir", "upload_base_url", mode="before")
    @classmethod
    def blank_as_unset(cls, value: object) -> object:
        # PHOTOVAULT_PRIVATE_OBJECT_DIR="" means unset, not the working directory
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def public_search_roots(self) -> list[Path]:
        """Return configured public roots in declaration order."""

        return [
            Path(entry.strip())
            for entry in self.public_object_search_paths.split(",")
            if entry.strip()
        ]

    @classmethod
    def build_default(cls) -> "StorageSettings":
        """Construct settings from the current environment."""

        return cls()


__all__ = ["DEFAULT_CHUNK_SIZE", "StorageSettings"]
