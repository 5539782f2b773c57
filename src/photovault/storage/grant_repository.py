"""Ledger of issued upload grants."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.db_models import UploadGrantModel


@dataclass(frozen=True, slots=True)
class UploadGrantRecord:
    object_id: str
    issued_at: datetime
    expires_at: datetime
    registered_at: datetime | None = None

    @property
    def registered(self) -> bool:
        return self.registered_at is not None

    def expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class UploadGrantRepository(Protocol):
    """Persistence operations for issued-but-unregistered upload grants."""

    def add(self, record: UploadGrantRecord) -> None:
        """Record a freshly issued grant."""

    def get(self, object_id: str) -> UploadGrantRecord | None:
        """Return the grant for ``object_id`` or ``None``."""

    def mark_registered(self, object_id: str, registered_at: datetime) -> UploadGrantRecord | None:
        """Flag the grant consumed; keeps the first registration time."""

    def list_expired_unregistered(self, reference_time: datetime) -> list[UploadGrantRecord]:
        """Return grants that expired without ever being registered."""

    def delete(self, object_id: str) -> bool:
        """Forget the grant."""


class InMemoryUploadGrantRepository:
    def __init__(self) -> None:
        self._records: dict[str, UploadGrantRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: UploadGrantRecord) -> None:
        with self._lock:
            self._records[record.object_id] = record

    def get(self, object_id: str) -> UploadGrantRecord | None:
        with self._lock:
            return self._records.get(object_id)

    def mark_registered(self, object_id: str, registered_at: datetime) -> UploadGrantRecord | None:
        with self._lock:
            record = self._records.get(object_id)
            if record is None:
                return None
            if record.registered_at is None:
                record = replace(record, registered_at=registered_at)
                self._records[object_id] = record
            return record

    def list_expired_unregistered(self, reference_time: datetime) -> list[UploadGrantRecord]:
        with self._lock:
            return [
                record
                for record in self._records.values()
                if not record.registered and record.expired(reference_time)
            ]

    def delete(self, object_id: str) -> bool:
        with self._lock:
            return self._records.pop(object_id, None) is not None


class SqlAlchemyUploadGrantRepository:
    """Store upload grants in the ``upload_grant`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def add(self, record: UploadGrantRecord) -> None:
        with self._session_factory() as session:
            session.add(
                UploadGrantModel(
                    object_id=record.object_id,
                    issued_at=record.issued_at,
                    expires_at=record.expires_at,
                    registered_at=record.registered_at,
                )
            )
            session.commit()

    def get(self, object_id: str) -> UploadGrantRecord | None:
        with self._session_factory() as session:
            model = session.get(UploadGrantModel, object_id)
            return self._to_domain(model) if model is not None else None

    def mark_registered(self, object_id: str, registered_at: datetime) -> UploadGrantRecord | None:
        with self._session_factory() as session:
            model = session.execute(
                select(UploadGrantModel)
                .where(UploadGrantModel.object_id == object_id)
                .with_for_update()
            ).scalar_one_or_none()
            if model is None:
                return None
            if model.registered_at is None:
                model.registered_at = registered_at
                session.commit()
            return self._to_domain(model)

    def list_expired_unregistered(self, reference_time: datetime) -> list[UploadGrantRecord]:
        with self._session_factory() as session:
            rows = session.execute(
                select(UploadGrantModel).where(
                    UploadGrantModel.registered_at.is_(None),
                    UploadGrantModel.expires_at <= reference_time,
                )
            ).scalars()
            return [self._to_domain(row) for row in rows]

    def delete(self, object_id: str) -> bool:
        with self._session_factory() as session:
            model = session.get(UploadGrantModel, object_id)
            if model is None:
                return False
            session.delete(model)
            session.commit()
            return True

    @staticmethod
    def _to_domain(model: UploadGrantModel) -> UploadGrantRecord:
        return UploadGrantRecord(
            object_id=model.object_id,
            issued_at=_as_utc(model.issued_at),
            expires_at=_as_utc(model.expires_at),
            registered_at=_as_utc(model.registered_at) if model.registered_at else None,
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


__all__ = [
    "InMemoryUploadGrantRepository",
    "SqlAlchemyUploadGrantRepository",
    "UploadGrantRecord",
    "UploadGrantRepository",
]
