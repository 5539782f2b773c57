"""Dependency wiring helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from fastapi import FastAPI
from sqlalchemy.orm import Session, sessionmaker

from .acl.policy_store import AclPolicyStore
from .acl.repository import SqlAlchemyPolicyRepository
from .api.errors import register_error_handlers
from .api.objects_router import build_objects_router
from .auth.identity import RequesterTokens
from .config import StorageSettings
from .db.db_init import create_session_factory, init_db
from .storage.delivery import ObjectDelivery
from .storage.grant_repository import SqlAlchemyUploadGrantRepository
from .storage.grants import UploadGrantIssuer
from .storage.paths import PathResolver
from .storage.service import ObjectStorageService


@dataclass(slots=True)
class StorageContainer:
    settings: StorageSettings
    service: ObjectStorageService


def build_storage(
    settings: StorageSettings, session_factory: sessionmaker[Session] | None = None
) -> StorageContainer:
    """Assemble the object storage service from ``settings``."""
    if session_factory is None:
        engine, session_factory = create_session_factory(settings.database_url)
        init_db(engine)

    resolver = PathResolver(
        private_root=settings.private_object_dir,
        public_roots=tuple(settings.public_search_roots),
    )
    grants = UploadGrantIssuer(
        resolver=resolver,
        ledger=SqlAlchemyUploadGrantRepository(session_factory),
        signing_key=settings.signing_key,
        ttl=timedelta(seconds=settings.upload_grant_ttl_seconds),
        upload_base_url=settings.upload_base_url,
    )
    acl = AclPolicyStore(
        repository=SqlAlchemyPolicyRepository(session_factory),
        resolver=resolver,
    )
    service = ObjectStorageService(
        resolver=resolver,
        grants=grants,
        acl=acl,
        delivery=ObjectDelivery(chunk_size=settings.chunk_size_bytes),
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    return StorageContainer(settings=settings, service=service)


def include_routers(app: FastAPI, container: StorageContainer) -> None:
    """Mount object routes and attach services."""
    app.state.requester_tokens = RequesterTokens(signing_key=container.settings.signing_key)

    register_error_handlers(app)
    app.include_router(build_objects_router(container.service))


__all__ = ["StorageContainer", "build_storage", "include_routers"]
