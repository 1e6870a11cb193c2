"""Database engine, session factory and the FastAPI session dependency.

The engine is not module-level state. ``create_app`` builds one ``Database``
at process start, stores it on ``app.state.database`` and disposes it at
shutdown; every request borrows a session from it through ``get_db``.
"""

from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import Settings

# Create base class for models
Base = declarative_base()

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _set_sqlite_pragma(dbapi_connection, connection_record):
    # SQLite defaults foreign_keys to OFF, so CASCADE constraints are silently
    # ignored unless we enable them on every connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the connection pool and hands out ORM sessions.

    Lifecycle: construct once, ``create_schema()`` at startup, ``session()``
    per unit of work, ``dispose()`` at shutdown.
    """

    def __init__(self, url: str, settings: Optional[Settings] = None):
        self.url = url
        self.engine = self._build_engine(url, settings)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, settings)

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @staticmethod
    def _build_engine(url: str, settings: Optional[Settings]) -> Engine:
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if url in _IN_MEMORY_URLS:
                # One shared connection, otherwise every checkout sees an empty database.
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, **kwargs)
            event.listen(engine, "connect", _set_sqlite_pragma)
            return engine

        settings = settings or Settings(database_url=url)
        return create_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            # Detects stale connections before use (prevents "server closed the connection" errors).
            pool_pre_ping=True,
        )

    def create_schema(self) -> None:
        """Create any missing tables for the registered models."""
        from . import models  # noqa: F401  (registers mappers on Base)

        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        """Round-trip a trivial query. Raises on connectivity failure."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for FastAPI routes to get database session.

    Rolls back the transaction on unhandled exceptions so that the
    connection is returned to the pool in a clean state.
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
