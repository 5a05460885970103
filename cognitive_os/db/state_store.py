"""
State Storage for Cognitive OS.

Provides the key/value persistence surface the stores write through:
- load(key) -> optional string
- save(key, string)

Both calls may raise PersistenceError. Callers treat that as non-fatal.

Backends:
- MemoryStateStore: process-local dict (tests, ephemeral runs)
- SqlStateStore: SQLAlchemy-backed table, SQLite by default
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from cognitive_os.core.errors import PersistenceError
from cognitive_os.db.database import create_state_engine, init_db, session_factory, session_scope
from cognitive_os.db.models import StateDocument


@runtime_checkable
class StateStorage(Protocol):
    """Persistence surface consumed by the skill store and activity log."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> None: ...


class MemoryStateStore:
    """In-memory storage backend."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def load(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SqlStateStore:
    """
    SQLAlchemy-backed storage.

    Documents live in the state_documents table, one row per key.
    """

    def __init__(self, database_url: str | None = None, *, engine: Engine | None = None):
        """
        Initialize the store.

        Args:
            database_url: SQLAlchemy URL (ignored when engine is given)
            engine: Pre-built engine, e.g. shared with other components
        """
        if engine is None:
            if database_url is None:
                raise ValueError("SqlStateStore needs a database_url or an engine")
            engine = create_state_engine(database_url)
        self.engine = engine
        self._sessions = session_factory(engine)

        try:
            init_db(engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not initialize state database: {e}") from e

        logger.debug(f"SqlStateStore ready at {engine.url.render_as_string(hide_password=True)}")

    def load(self, key: str) -> str | None:
        try:
            with session_scope(self._sessions) as session:
                row = session.get(StateDocument, key)
                return row.value if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load '{key}': {e}") from e

    def save(self, key: str, value: str) -> None:
        now = datetime.now(UTC)
        try:
            with session_scope(self._sessions) as session:
                row = session.get(StateDocument, key)
                if row is None:
                    session.add(StateDocument(key=key, value=value, updated_at=now))
                else:
                    row.value = value
                    row.updated_at = now
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save '{key}': {e}") from e

    def close(self) -> None:
        """Dispose of pooled connections."""
        self.engine.dispose()
