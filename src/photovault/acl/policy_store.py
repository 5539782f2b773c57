"""Attach ownership/visibility policies to objects and answer access checks."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..storage.errors import ObjectNotFoundError, PolicyConflictError
from ..storage.paths import PathResolver
from .models import AclGrant, AclPolicy, Permission, Visibility
from .repository import PolicyRepository

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AclPolicyStore:
    """Policy lifecycle on top of an injectable :class:`PolicyRepository`."""

    repository: PolicyRepository
    resolver: PathResolver

    def attach_policy(self, object_id: str, owner: str, visibility: Visibility) -> str:
        """Create the policy for ``object_id`` and return its logical path.

        Repeating the call with the same owner and visibility is a no-op;
        any other redefinition raises :class:`PolicyConflictError`.
        """
        visibility = Visibility(visibility)
        logical_path = self.resolver.to_logical_path(self.resolver.object_path_for(object_id))
        candidate = AclPolicy(object_id=object_id, owner=owner, visibility=visibility)
        stored = self.repository.insert_if_absent(candidate)
        if stored is candidate:
            logger.info(
                "objects.policy.attached",
                object_id=object_id,
                owner=owner,
                visibility=visibility.value,
            )
            return logical_path
        if stored.same_definition(owner, visibility):
            logger.debug("objects.policy.reattached", object_id=object_id)
            return logical_path
        logger.warning(
            "objects.policy.conflict",
            object_id=object_id,
            owner=owner,
            existing_owner=stored.owner,
            visibility=visibility.value,
            existing_visibility=stored.visibility.value,
        )
        raise PolicyConflictError(f"Object '{object_id}' already has a different policy")

    def check_access(self, object_id: str, requester_id: str, permission: Permission) -> bool:
        """Return whether ``requester_id`` holds ``permission``; deny when unknown."""
        policy = self.repository.get(object_id)
        if policy is None:
            return False
        return policy.allows(requester_id, Permission(permission))

    def get_policy(self, object_id: str) -> AclPolicy | None:
        return self.repository.get(object_id)

    def update_policy(self, object_id: str, new_visibility: Visibility) -> AclPolicy:
        """Change visibility going forward; owner check is the caller's job."""
        visibility = Visibility(new_visibility)
        updated = self.repository.update(
            object_id, lambda policy: policy.with_visibility(visibility)
        )
        if updated is None:
            raise ObjectNotFoundError()
        logger.info("objects.policy.updated", object_id=object_id, visibility=visibility.value)
        return updated

    def grant_permission(self, object_id: str, principal: str, permission: Permission) -> AclPolicy:
        grant = AclGrant(principal=principal, permission=Permission(permission))
        updated = self.repository.update(object_id, lambda policy: policy.with_grant(grant))
        if updated is None:
            raise ObjectNotFoundError()
        logger.info(
            "objects.policy.granted",
            object_id=object_id,
            principal=principal,
            permission=grant.permission.value,
        )
        return updated

    def remove_policy(self, object_id: str) -> bool:
        removed = self.repository.delete(object_id)
        if removed:
            logger.info("objects.policy.removed", object_id=object_id)
        return removed


__all__ = ["AclPolicyStore"]
