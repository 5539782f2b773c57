"""Database initialization helpers."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .db_models import Base

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def create_session_factory(database_url: str) -> tuple[Engine, sessionmaker[Session]]:
    """Build an engine and session factory for ``database_url``."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    if database_url in _MEMORY_URLS:
        # one shared connection, otherwise each thread sees an empty database
        engine = create_engine(
            database_url, future=True, connect_args=connect_args, poolclass=StaticPool
        )
    else:
        engine = create_engine(database_url, future=True, connect_args=connect_args)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    return engine, session_factory


def init_db(engine: Engine) -> None:
    """Create ACL and upload grant tables if missing."""
    Base.metadata.create_all(engine)
