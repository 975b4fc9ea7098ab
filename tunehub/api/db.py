"""
Database utilities for the TuneHub backend.

Uses SQLAlchemy 2.0 style engine/sessions. A `Database` is constructed by the
application root and handed to request handlers through `db_session_dep`.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from tunehub.api.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class DatabaseConfigError(RuntimeError):
    """Raised when no usable database URL can be built from the environment."""


def _redact_sqlalchemy_url(url: str) -> str:
    """Render a database URL with its password masked, for logging."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<redacted>"


def _normalize_sqlalchemy_database_url(database_url: str) -> str:
    """SQLAlchemy expects 'postgresql://' not 'postgres://'; explicit drivers are kept."""
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://") :]
    return database_url


# PUBLIC_INTERFACE
def build_database_url() -> str:
    """
    Build a SQLAlchemy database URL from environment variables.

    DATABASE_URL wins when set and is used as given. Otherwise POSTGRES_URL names
    the server, either as a full postgres URL or as host[:port], and
    POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB and POSTGRES_PORT fill in or
    override its parts.

    Raises:
        DatabaseConfigError: if configuration is missing or incomplete.
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return _normalize_sqlalchemy_database_url(database_url)

    server = os.getenv("POSTGRES_URL", "").strip()
    if not server:
        raise DatabaseConfigError(
            "Database configuration missing. Set DATABASE_URL or "
            "POSTGRES_URL with POSTGRES_USER, POSTGRES_PASSWORD and POSTGRES_DB."
        )

    if server.startswith(("postgresql://", "postgres://")):
        base = make_url(_normalize_sqlalchemy_database_url(server))
    else:
        host, port = server, None
        if ":" in server and server.rsplit(":", 1)[-1].isdigit():
            host, port_str = server.rsplit(":", 1)
            port = int(port_str)
        base = URL.create("postgresql", host=host, port=port)

    env_port = os.getenv("POSTGRES_PORT", "").strip()
    url = URL.create(
        "postgresql+psycopg2",
        username=os.getenv("POSTGRES_USER", "").strip() or base.username,
        password=os.getenv("POSTGRES_PASSWORD", "").strip() or base.password,
        host=base.host or "localhost",
        port=int(env_port) if env_port.isdigit() else (base.port or 5432),
        database=os.getenv("POSTGRES_DB", "").strip() or base.database,
    )
    if not (url.username and url.password and url.database):
        raise DatabaseConfigError(
            "Database configuration incomplete. Provide POSTGRES_USER, POSTGRES_PASSWORD and "
            "POSTGRES_DB, or include them in POSTGRES_URL."
        )
    return url.render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    The engine is created lazily so that building the app never needs a reachable
    database. Pass `url` explicitly (tests) or let it be built from the environment.
    """

    def __init__(self, url: Optional[str] = None, **engine_kwargs: Any):
        self._url = url
        self._engine_kwargs: Dict[str, Any] = engine_kwargs
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    # PUBLIC_INTERFACE
    def get_engine(self) -> Engine:
        """Return (and lazily create) the SQLAlchemy Engine."""
        if self._engine is None:
            url = self._url or build_database_url()
            logger.info("DB: using database url=%s", _redact_sqlalchemy_url(url))

            kwargs = dict(self._engine_kwargs)
            if not url.startswith("sqlite"):
                kwargs.setdefault("pool_pre_ping", True)
            engine = create_engine(url, **kwargs)
            if engine.dialect.name == "sqlite":
                _enable_sqlite_foreign_keys(engine)

            self._engine = engine
            self._sessionmaker = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
        return self._engine

    # PUBLIC_INTERFACE
    def create_all(self) -> None:
        """Create any missing tables."""
        from tunehub.api.models import Base

        Base.metadata.create_all(self.get_engine())

    # PUBLIC_INTERFACE
    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Yield a SQLAlchemy Session, handling commit/rollback.

        Usage:
            with database.session() as db:
                ...
        """
        self.get_engine()
        assert self._sessionmaker is not None  # created by get_engine()
        db = self._sessionmaker()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # PUBLIC_INTERFACE
    def dispose(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            self._engine.dispose()


# PUBLIC_INTERFACE
def db_session_dep(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a request-scoped DB session.

    Missing DB configuration and connection failures become 503 errors instead of
    generic 500s.
    """
    database: Database = request.app.state.database
    try:
        with database.session() as db:
            yield db
    except DatabaseConfigError as exc:
        logger.error("database_misconfigured: %s", exc)
        raise ServiceUnavailableError("Database is not configured")
    except OperationalError as exc:
        logger.error("database_unavailable: exception=%s", exc.__class__.__name__)
        raise ServiceUnavailableError("Database connection/query failed")


# PUBLIC_INTERFACE
def dialect_insert(db: Session, model):
    """Return an INSERT construct supporting ON CONFLICT for the session's dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)
