from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import jwt
import pytest

from photovault.acl.policy_store import AclPolicyStore
from photovault.storage.errors import (
    ObjectForbiddenError,
    ObjectNotFoundError,
    PolicyConflictError,
    UploadGrantExpiredError,
)
from photovault.storage.grant_repository import InMemoryUploadGrantRepository
from photovault.storage.grants import LocalPath, SignedURL, UploadGrantIssuer
from photovault.storage.paths import PathResolver

SIGNING_KEY = "test-signing-key"


def signed_issuer(resolver: PathResolver, ttl: timedelta = timedelta(minutes=15)) -> UploadGrantIssuer:
    return UploadGrantIssuer(
        resolver=resolver,
        ledger=InMemoryUploadGrantRepository(),
        signing_key=SIGNING_KEY,
        ttl=ttl,
        upload_base_url="https://vault.example.test/",
    )


def token_of(target: SignedURL) -> str:
    return parse_qs(urlsplit(target.url).query)["token"][0]


def test_local_grant_points_into_private_uploads(
    issuer: UploadGrantIssuer, private_root: Path
) -> None:
    target = issuer.issue_upload_grant()

    assert isinstance(target, LocalPath)
    assert target.path == private_root / "uploads" / target.object_id
    assert target.path.parent.is_dir()
    assert target.expires_at > datetime.now(tz=timezone.utc)


def test_each_grant_mints_new_object_id(issuer: UploadGrantIssuer) -> None:
    ids = {issuer.issue_upload_grant().object_id for _ in range(5)}
    assert len(ids) == 5


def test_grant_does_not_attach_policy(issuer: UploadGrantIssuer, acl_store: AclPolicyStore) -> None:
    target = issuer.issue_upload_grant()
    assert acl_store.get_policy(target.object_id) is None


def test_signed_grant_is_scoped_to_object(resolver: PathResolver) -> None:
    issuer = signed_issuer(resolver)

    target = issuer.issue_upload_grant()

    assert isinstance(target, SignedURL)
    assert target.url.startswith(f"https://vault.example.test/uploads/{target.object_id}?token=")
    claims = jwt.decode(token_of(target), SIGNING_KEY, algorithms=["HS256"])
    assert claims["sub"] == target.object_id
    assert claims["scope"] == "object:write"
    assert claims["exp"] == int(target.expires_at.timestamp())
    issuer.verify_upload_token(target.object_id, token_of(target))


def test_signed_token_rejected_for_other_object(resolver: PathResolver) -> None:
    issuer = signed_issuer(resolver)
    first = issuer.issue_upload_grant()
    second = issuer.issue_upload_grant()

    with pytest.raises(ObjectForbiddenError):
        issuer.verify_upload_token(second.object_id, token_of(first))


def test_tampered_token_rejected(resolver: PathResolver) -> None:
    issuer = signed_issuer(resolver)
    target = issuer.issue_upload_grant()
    forged = jwt.encode(
        {"sub": target.object_id, "scope": "object:write", "iat": 0, "exp": 4102444800},
        "other-key",
        algorithm="HS256",
    )

    with pytest.raises(ObjectForbiddenError):
        issuer.verify_upload_token(target.object_id, forged)


def test_expired_token_rejected(resolver: PathResolver) -> None:
    issuer = signed_issuer(resolver, ttl=timedelta(seconds=-60))
    target = issuer.issue_upload_grant()

    with pytest.raises(UploadGrantExpiredError):
        issuer.verify_upload_token(target.object_id, token_of(target))


def test_consume_marks_grant_registered(issuer: UploadGrantIssuer) -> None:
    target = issuer.issue_upload_grant()

    record = issuer.consume(target.object_id)

    assert record.registered
    assert issuer.consume(target.object_id).registered_at == record.registered_at
    with pytest.raises(PolicyConflictError):
        issuer.ensure_writable(target.object_id)


def test_consume_after_expiry_rejected(issuer: UploadGrantIssuer) -> None:
    target = issuer.issue_upload_grant()
    later = target.expires_at + timedelta(seconds=1)

    with pytest.raises(UploadGrantExpiredError):
        issuer.consume(target.object_id, now=later)
    with pytest.raises(UploadGrantExpiredError):
        issuer.ensure_writable(target.object_id, now=later)


def test_consume_unknown_grant(issuer: UploadGrantIssuer) -> None:
    with pytest.raises(ObjectNotFoundError):
        issuer.consume("never-issued")


def test_ledger_lists_only_expired_unregistered(issuer: UploadGrantIssuer) -> None:
    registered = issuer.issue_upload_grant()
    abandoned = issuer.issue_upload_grant()
    issuer.consume(registered.object_id)
    later = abandoned.expires_at + timedelta(minutes=1)

    expired = issuer.ledger.list_expired_unregistered(later)

    assert [record.object_id for record in expired] == [abandoned.object_id]
