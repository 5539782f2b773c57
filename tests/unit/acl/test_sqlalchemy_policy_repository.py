from __future__ import annotations

from photovault.acl.models import AclGrant, AclPolicy, Permission, Visibility
from photovault.acl.repository import SqlAlchemyPolicyRepository
from photovault.db.db_init import create_session_factory, init_db


def build_repo() -> SqlAlchemyPolicyRepository:
    engine, session_factory = create_session_factory("sqlite:///:memory:")
    init_db(engine)
    return SqlAlchemyPolicyRepository(session_factory)


def test_insert_if_absent_keeps_first_policy() -> None:
    repo = build_repo()
    first = AclPolicy("obj-1", "owner", Visibility.PRIVATE)

    assert repo.insert_if_absent(first) is first
    stored = repo.insert_if_absent(AclPolicy("obj-1", "other", Visibility.PUBLIC))

    assert stored == first
    assert repo.get("obj-1") == first


def test_update_persists_visibility_and_grants() -> None:
    repo = build_repo()
    repo.insert_if_absent(AclPolicy("obj-1", "owner", Visibility.PRIVATE))

    repo.update("obj-1", lambda policy: policy.with_visibility(Visibility.PUBLIC))
    repo.update("obj-1", lambda policy: policy.with_grant(AclGrant("editor", Permission.WRITE)))

    stored = repo.get("obj-1")
    assert stored is not None
    assert stored.visibility is Visibility.PUBLIC
    assert stored.permissions == (AclGrant("editor", Permission.WRITE),)


def test_update_missing_returns_none() -> None:
    repo = build_repo()
    assert repo.update("ghost", lambda policy: policy) is None


def test_delete_removes_policy_and_grants() -> None:
    repo = build_repo()
    repo.insert_if_absent(
        AclPolicy(
            "obj-1",
            "owner",
            Visibility.PRIVATE,
            permissions=(AclGrant("viewer", Permission.READ),),
        )
    )

    assert repo.delete("obj-1") is True
    assert repo.get("obj-1") is None
    assert repo.delete("obj-1") is False
