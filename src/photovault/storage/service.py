"""Object storage facade consumed by the HTTP layer."""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from fastapi.responses import StreamingResponse

from ..acl.models import AclPolicy, Permission, Visibility
from ..acl.policy_store import AclPolicyStore
from .delivery import ObjectDelivery
from .errors import ObjectForbiddenError, ObjectNotFoundError
from .grants import UploadGrantIssuer, WriteTarget
from .paths import PathResolver, object_id_from_reference

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ObjectStorageService:
    """Glue the resolver, grant issuer, ACL store and delivery together.

    Lifecycle of an object: :meth:`create_upload_grant` hands out a write
    target, the client writes bytes there (directly or through
    :meth:`receive_upload`), :meth:`register_object` attaches the ACL policy,
    and :meth:`authorize_and_stream` serves it to permitted readers.
    """

    resolver: PathResolver
    grants: UploadGrantIssuer
    acl: AclPolicyStore
    delivery: ObjectDelivery
    cache_ttl_seconds: int = 3600

    def create_upload_grant(self) -> WriteTarget:
        return self.grants.issue_upload_grant()

    async def receive_upload(
        self, object_id: str, token: str, chunks: AsyncIterator[bytes]
    ) -> int:
        """Write a signed-URL upload to the object's private location."""
        self.grants.verify_upload_token(object_id, token)
        self.grants.ensure_writable(object_id)

        target = self.resolver.object_path_for(object_id)
        target.parent.mkdir(parents=True, exist_ok=True)
        # one temp file per request; concurrent PUTs never share a partial file
        partial = target.with_name(f"{target.name}.{uuid.uuid4().hex}.part")
        written = 0
        try:
            with partial.open("wb") as sink:
                async for chunk in chunks:
                    if chunk:
                        sink.write(chunk)
                        written += len(chunk)
            os.replace(partial, target)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        logger.info("objects.upload.received", object_id=object_id, size=written)
        return written

    def register_object(self, object_ref: str, owner_id: str, visibility: Visibility) -> str:
        """Attach the owner policy to an uploaded object; return its logical path."""
        object_id = object_id_from_reference(object_ref)
        location = self.resolver.object_path_for(object_id)
        if not location.is_file():
            logger.info("objects.register.missing_bytes", object_id=object_id)
            raise ObjectNotFoundError("Uploaded object not found")
        self.grants.consume(object_id)
        return self.acl.attach_policy(object_id, owner_id, Visibility(visibility))

    def authorize_and_stream(
        self,
        logical_path: str,
        requester_id: str,
        permission: Permission = Permission.READ,
        cache_ttl_seconds: int | None = None,
    ) -> StreamingResponse:
        location = self.resolver.resolve_for_read(logical_path)
        object_id = self.resolver.object_id_from_logical_path(logical_path)
        if not self.acl.check_access(object_id, requester_id, Permission(permission)):
            logger.info(
                "objects.access.denied",
                object_id=object_id,
                requester_id=requester_id,
                permission=Permission(permission).value,
            )
            raise ObjectForbiddenError()
        ttl = self.cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        return self.delivery.deliver(location, ttl)

    def serve_public_object(self, relative_path: str) -> StreamingResponse:
        location = self.resolver.resolve_public(relative_path)
        if location is None:
            raise ObjectNotFoundError()
        return self.delivery.deliver(location, self.cache_ttl_seconds)

    def update_visibility(
        self, object_id: str, requester_id: str, visibility: Visibility
    ) -> AclPolicy:
        self._require_owner(object_id, requester_id)
        return self.acl.update_policy(object_id, Visibility(visibility))

    def grant_permission(
        self, object_id: str, requester_id: str, principal: str, permission: Permission
    ) -> AclPolicy:
        self._require_owner(object_id, requester_id)
        return self.acl.grant_permission(object_id, principal, Permission(permission))

    def unregister_object(self, object_id: str, requester_id: str) -> None:
        """Drop the policy, the bytes and the grant record of ``object_id``."""
        if self.acl.get_policy(object_id) is None:
            raise ObjectNotFoundError()
        if not self.acl.check_access(object_id, requester_id, Permission.WRITE):
            logger.info(
                "objects.access.denied",
                object_id=object_id,
                requester_id=requester_id,
                permission=Permission.WRITE.value,
            )
            raise ObjectForbiddenError()
        self.acl.remove_policy(object_id)
        self.resolver.object_path_for(object_id).unlink(missing_ok=True)
        self.grants.ledger.delete(object_id)
        logger.info("objects.unregistered", object_id=object_id, requester_id=requester_id)

    def cleanup_expired_uploads(self, reference_time: datetime | None = None) -> int:
        """Purge bytes and ledger entries of grants that were never registered."""
        now = reference_time or datetime.now(tz=timezone.utc)
        removed = 0
        for record in self.grants.ledger.list_expired_unregistered(now):
            location = self.resolver.object_path_for(record.object_id)
            location.unlink(missing_ok=True)
            for partial in location.parent.glob(f"{location.name}.*.part"):
                partial.unlink(missing_ok=True)
            self.grants.ledger.delete(record.object_id)
            removed += 1
            logger.info("objects.cleanup.removed", object_id=record.object_id)
        return removed

    def _require_owner(self, object_id: str, requester_id: str) -> AclPolicy:
        policy = self.acl.get_policy(object_id)
        if policy is None:
            raise ObjectNotFoundError()
        if policy.owner != requester_id:
            raise ObjectForbiddenError("Only the owner may change this object's policy")
        return policy


__all__ = ["ObjectStorageService"]
