from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from photovault.acl.policy_store import AclPolicyStore
from photovault.acl.repository import InMemoryPolicyRepository
from photovault.storage.delivery import ObjectDelivery
from photovault.storage.grant_repository import InMemoryUploadGrantRepository
from photovault.storage.grants import UploadGrantIssuer
from photovault.storage.paths import PathResolver
from photovault.storage.service import ObjectStorageService

SIGNING_KEY = "test-signing-key"


@pytest.fixture()
def private_root(tmp_path: Path) -> Path:
    root = tmp_path / "priv"
    root.mkdir()
    return root


@pytest.fixture()
def resolver(private_root: Path) -> PathResolver:
    return PathResolver(private_root=private_root)


@pytest.fixture()
def acl_store(resolver: PathResolver) -> AclPolicyStore:
    return AclPolicyStore(repository=InMemoryPolicyRepository(), resolver=resolver)


@pytest.fixture()
def issuer(resolver: PathResolver) -> UploadGrantIssuer:
    return UploadGrantIssuer(
        resolver=resolver,
        ledger=InMemoryUploadGrantRepository(),
        signing_key=SIGNING_KEY,
        ttl=timedelta(minutes=15),
    )


@pytest.fixture()
def storage_service(
    resolver: PathResolver, issuer: UploadGrantIssuer, acl_store: AclPolicyStore
) -> ObjectStorageService:
    return ObjectStorageService(
        resolver=resolver,
        grants=issuer,
        acl=acl_store,
        delivery=ObjectDelivery(chunk_size=16),
        cache_ttl_seconds=3600,
    )
