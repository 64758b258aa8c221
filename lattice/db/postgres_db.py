"""
Engine and session management for the pipeline database.

PostgreSQL in deployment; in-memory SQLite for tests and local runs.
"""
from __future__ import annotations

import os
import socket
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, ContextManager, Iterator, Optional, Tuple
from urllib.parse import urlparse, urlunparse

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ENVIRONMENT value -> variable holding that environment's URL. Staging is the default.
_ENVIRONMENT_URL_VARS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("production", "prod"), "DATABASE_URL_PROD"),
    (("staging", "stage", ""), "DATABASE_URL_STAGING"),
)

_engine: Optional[Engine] = None
_session_maker: Optional[sessionmaker] = None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _ipv4_for(hostname: str) -> str:
    """First IPv4 address of ``hostname``; the hostname itself when it does not resolve."""
    try:
        infos = socket.getaddrinfo(hostname, None, socket.AF_INET, socket.SOCK_STREAM)
    except (socket.gaierror, OSError):
        return hostname
    return infos[0][4][0] if infos else hostname


def _prefer_ipv4(url: str) -> str:
    # Some hosts (GCP VMs in particular) have no IPv6 route to the database.
    if url.startswith("sqlite"):
        return url
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.hostname:
        return url
    address = _ipv4_for(parsed.hostname)
    if address == parsed.hostname:
        return url
    return urlunparse(parsed._replace(netloc=parsed.netloc.replace(parsed.hostname, address)))


def get_database_url() -> str:
    """
    Database URL for the current ENVIRONMENT.

    'production'/'prod' reads DATABASE_URL_PROD; 'staging'/'stage' or an unset
    ENVIRONMENT reads DATABASE_URL_STAGING. DATABASE_URL is the fallback for both.
    """
    environment = os.getenv("ENVIRONMENT", "").lower()
    candidates = [var for names, var in _ENVIRONMENT_URL_VARS if environment in names]
    candidates.append("DATABASE_URL")
    for var in candidates:
        url = os.getenv(var)
        if url:
            return _prefer_ipv4(url)
    raise ValueError(
        "No database URL found. Set DATABASE_URL_PROD, DATABASE_URL_STAGING, or DATABASE_URL"
    )


def _build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # Every session must see the same in-memory database.
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def init_engine(database_url: str) -> Engine:
    """Bind the module-level engine to an explicit URL (scripts and tests)."""
    global _engine, _session_maker
    if _engine is not None:
        _engine.dispose()
    _engine = _build_engine(database_url)
    _session_maker = None
    return _engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _build_engine(get_database_url())
    return _engine


def _new_session_maker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_session_factory() -> sessionmaker:
    global _session_maker
    if _session_maker is None:
        _session_maker = _new_session_maker(get_engine())
    return _session_maker


def _transaction(factory: sessionmaker) -> Iterator[Session]:
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_db_session() -> Iterator[Session]:
    """
    Transactional session on the module-level engine.

    Commits when the block exits normally, rolls back on any exception, and
    always closes the session.
    """
    yield from _transaction(get_session_factory())


def session_scope_for(engine: Engine) -> Callable[[], ContextManager[Session]]:
    """A get_db_session equivalent bound to ``engine`` (for repositories in tests)."""
    factory = _new_session_maker(engine)

    @contextmanager
    def _scope() -> Iterator[Session]:
        yield from _transaction(factory)

    return _scope


def check_table_exists(session: Session, table_name: str) -> bool:
    return inspect(session.get_bind()).has_table(table_name)
