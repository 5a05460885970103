from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker

from cognitive_os.core.errors import PersistenceError
from cognitive_os.db.models import Base


def create_state_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the state database.

    SQLite parent directories are created on demand so a fresh install can
    persist to ~/.cognitive_os without any setup.

    Raises:
        PersistenceError: the URL is invalid, its driver is missing, or the
            directory cannot be created
    """
    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise PersistenceError(f"Invalid database URL: {e}") from e

    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        directory = Path(url.database).expanduser().parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create state directory {directory}: {e}") from e

    try:
        return create_engine(url, echo=echo, pool_pre_ping=True)
    except (ArgumentError, ImportError) as e:  # unknown dialect or driver not installed
        raise PersistenceError(f"Cannot create engine for {url.get_backend_name()}: {e}") from e


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
    logger.debug(f"State tables initialized on {engine.url.render_as_string(hide_password=True)}")


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
