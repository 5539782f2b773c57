"""Backing stores for ACL policies."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.db_models import ObjectAclGrantModel, ObjectAclPolicyModel
from .models import AclGrant, AclPolicy, Permission, Visibility

PolicyMutation = Callable[[AclPolicy], AclPolicy]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class PolicyRepository(Protocol):
    """Persistence operations for per-object ACL policies.

    Each method is atomic for its key; no cross-key transactions are offered.
    """

    def get(self, object_id: str) -> AclPolicy | None:
        """Return the policy for ``object_id`` or ``None``."""

    def insert_if_absent(self, policy: AclPolicy) -> AclPolicy:
        """Store ``policy`` unless one exists; return whichever is stored."""

    def update(self, object_id: str, mutate: PolicyMutation) -> AclPolicy | None:
        """Apply ``mutate`` to the stored policy; ``None`` if missing."""

    def delete(self, object_id: str) -> bool:
        """Drop the policy; return whether one existed."""


class InMemoryPolicyRepository:
    """Dictionary backed repository guarded by a lock."""

    def __init__(self) -> None:
        self._policies: dict[str, AclPolicy] = {}
        self._lock = threading.Lock()

    def get(self, object_id: str) -> AclPolicy | None:
        with self._lock:
            return self._policies.get(object_id)

    def insert_if_absent(self, policy: AclPolicy) -> AclPolicy:
        with self._lock:
            return self._policies.setdefault(policy.object_id, policy)

    def update(self, object_id: str, mutate: PolicyMutation) -> AclPolicy | None:
        with self._lock:
            current = self._policies.get(object_id)
            if current is None:
                return None
            updated = mutate(current)
            self._policies[object_id] = updated
            return updated

    def delete(self, object_id: str) -> bool:
        with self._lock:
            return self._policies.pop(object_id, None) is not None


class SqlAlchemyPolicyRepository:
    """Store ACL policies in the ``object_acl_policy`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, object_id: str) -> AclPolicy | None:
        with self._session_factory() as session:
            model = session.get(ObjectAclPolicyModel, object_id)
            return self._to_domain(model) if model is not None else None

    def insert_if_absent(self, policy: AclPolicy) -> AclPolicy:
        now = _utcnow()
        with self._session_factory() as session:
            existing = session.get(ObjectAclPolicyModel, policy.object_id)
            if existing is not None:
                return self._to_domain(existing)
            model = ObjectAclPolicyModel(
                object_id=policy.object_id,
                owner=policy.owner,
                visibility=policy.visibility.value,
                created_at=now,
                updated_at=now,
            )
            model.grants = [
                ObjectAclGrantModel(principal=grant.principal, permission=grant.permission.value)
                for grant in policy.permissions
            ]
            session.add(model)
            try:
                session.commit()
            except sa_exc.IntegrityError:
                # a concurrent registration won the primary key
                session.rollback()
                winner = session.get(ObjectAclPolicyModel, policy.object_id)
                if winner is None:
                    raise
                return self._to_domain(winner)
            return policy

    def update(self, object_id: str, mutate: PolicyMutation) -> AclPolicy | None:
        with self._session_factory() as session:
            model = session.execute(
                select(ObjectAclPolicyModel)
                .where(ObjectAclPolicyModel.object_id == object_id)
                .with_for_update()
            ).scalar_one_or_none()
            if model is None:
                return None
            updated = mutate(self._to_domain(model))
            model.owner = updated.owner
            model.visibility = updated.visibility.value
            model.updated_at = _utcnow()
            stored = {(g.principal, g.permission) for g in model.grants}
            for grant in updated.permissions:
                if (grant.principal, grant.permission.value) not in stored:
                    model.grants.append(
                        ObjectAclGrantModel(
                            principal=grant.principal, permission=grant.permission.value
                        )
                    )
            session.commit()
            return updated

    def delete(self, object_id: str) -> bool:
        with self._session_factory() as session:
            model = session.get(ObjectAclPolicyModel, object_id)
            if model is None:
                return False
            session.delete(model)
            session.commit()
            return True

    @staticmethod
    def _to_domain(model: ObjectAclPolicyModel) -> AclPolicy:
        return AclPolicy(
            object_id=model.object_id,
            owner=model.owner,
            visibility=Visibility(model.visibility),
            permissions=tuple(
                AclGrant(principal=grant.principal, permission=Permission(grant.permission))
                for grant in model.grants
            ),
        )


__all__ = [
    "InMemoryPolicyRepository",
    "PolicyMutation",
    "PolicyRepository",
    "SqlAlchemyPolicyRepository",
]
