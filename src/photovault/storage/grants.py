"""Issue write targets for direct uploads.

A grant is minted before any bytes exist. It names a fresh object identifier
and a place to write to: a local path in single-host deployments or a signed,
time-boxed URL when an external upload endpoint is configured. Grants never
create ACL policies; that happens on registration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Union
from urllib.parse import urlencode

import jwt
import structlog
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError

from .errors import (
    ObjectForbiddenError,
    ObjectNotFoundError,
    PolicyConflictError,
    StorageConfigurationError,
    UploadGrantExpiredError,
)
from .grant_repository import UploadGrantRecord, UploadGrantRepository
from .paths import PathResolver

UPLOAD_SCOPE = "object:write"

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class LocalPath:
    """Write target on the shared filesystem."""

    object_id: str
    path: Path
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class SignedURL:
    """Write target reachable over HTTP PUT with an embedded capability."""

    object_id: str
    url: str
    expires_at: datetime


WriteTarget = Union[LocalPath, SignedURL]


@dataclass(slots=True)
class UploadGrantIssuer:
    """Mint object identifiers together with a place to upload their bytes."""

    resolver: PathResolver
    ledger: UploadGrantRepository
    signing_key: str
    ttl: timedelta
    upload_base_url: str | None = None

    def issue_upload_grant(self) -> WriteTarget:
        object_id, location = self.resolver.resolve_upload_target()
        issued_at = _utcnow()
        expires_at = issued_at + self.ttl
        self.ledger.add(
            UploadGrantRecord(object_id=object_id, issued_at=issued_at, expires_at=expires_at)
        )

        target: WriteTarget
        if self.upload_base_url:
            token = self._issue_token(object_id, issued_at, expires_at)
            base = self.upload_base_url.rstrip("/")
            url = f"{base}/uploads/{object_id}?{urlencode({'token': token})}"
            target = SignedURL(object_id=object_id, url=url, expires_at=expires_at)
        else:
            target = LocalPath(object_id=object_id, path=location, expires_at=expires_at)

        logger.info(
            "objects.grant.issued",
            object_id=object_id,
            kind=type(target).__name__,
            expires_at=expires_at.isoformat(),
        )
        return target

    def verify_upload_token(self, object_id: str, token: str) -> None:
        """Ensure ``token`` authorizes a write to exactly ``object_id``."""
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self.signing_key,
                algorithms=["HS256"],
                options={"require": ["exp", "iat", "sub", "scope"]},
            )
        except ExpiredSignatureError as exc:
            raise UploadGrantExpiredError("Upload grant expired") from exc
        except PyJWTInvalidTokenError as exc:
            logger.warning("objects.grant.invalid_token", object_id=object_id)
            raise ObjectForbiddenError("Invalid upload token") from exc
        if payload.get("sub") != object_id or payload.get("scope") != UPLOAD_SCOPE:
            logger.warning("objects.grant.token_mismatch", object_id=object_id)
            raise ObjectForbiddenError("Upload token does not cover this object")

    def ensure_writable(self, object_id: str, now: datetime | None = None) -> UploadGrantRecord:
        """Reject writes for unknown, expired or already registered grants."""
        record = self._require_grant(object_id)
        if record.registered:
            raise PolicyConflictError(f"Object '{object_id}' is already registered")
        if record.expired(now or _utcnow()):
            raise UploadGrantExpiredError("Upload grant expired")
        return record

    def consume(self, object_id: str, now: datetime | None = None) -> UploadGrantRecord:
        """Mark the grant registered.

        Re-registering an already consumed grant is allowed here; the ACL
        store decides whether the repeat is identical or a conflict.
        """
        now = now or _utcnow()
        record = self._require_grant(object_id)
        if not record.registered and record.expired(now):
            logger.info("objects.grant.expired", object_id=object_id)
            raise UploadGrantExpiredError("Upload grant expired before registration")
        consumed = self.ledger.mark_registered(object_id, now)
        if consumed is None:
            raise ObjectNotFoundError()
        return consumed

    def _require_grant(self, object_id: str) -> UploadGrantRecord:
        record = self.ledger.get(object_id)
        if record is None:
            raise ObjectNotFoundError(f"No upload grant for object '{object_id}'")
        return record

    def _issue_token(self, object_id: str, issued_at: datetime, expires_at: datetime) -> str:
        if not self.signing_key:
            raise StorageConfigurationError("PHOTOVAULT_SIGNING_KEY is not configured")
        payload: dict[str, Any] = {
            "sub": object_id,
            "scope": UPLOAD_SCOPE,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.signing_key, algorithm="HS256")


__all__ = ["LocalPath", "SignedURL", "UPLOAD_SCOPE", "UploadGrantIssuer", "WriteTarget"]
