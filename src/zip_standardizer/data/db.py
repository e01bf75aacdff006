"""SQLite persistence for background rebuild jobs.

The engine is built on first use from ``DB_URL`` (default: ``zipstd.db`` at the
repository root) and creates the ``rebuild_jobs`` table at the same time.
``reset_engine`` forgets the cached engine so the next call reads ``DB_URL``
again, which lets tests point it at a temporary file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "zipstd.db"


class Base(DeclarativeBase):
    """Declarative base shared by the job tables."""


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_database_url() -> str:
    """Return ``DB_URL`` when set, else a SQLite file at the repository root."""
    url = os.getenv("DB_URL")
    if url:
        return url
    db_path = Path(__file__).resolve().parents[3] / DEFAULT_DB_NAME
    return URL.create("sqlite", database=str(db_path)).render_as_string(hide_password=False)


def _connect_args(url: str) -> dict[str, object]:
    # Rebuild workers use the engine from their own threads.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def get_engine() -> Engine:
    """Return the shared engine, creating it and the job tables on first use."""
    global _engine
    if _engine is None:
        url = get_database_url()
        engine = create_engine(url, connect_args=_connect_args(url))
        # Registers RebuildJob on Base.metadata.
        from zip_standardizer.data.models import rebuild_job  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.debug("Job database ready at %s", engine.url)
        _engine = engine
    return _engine


def init_db() -> None:
    """Create the job tables now instead of on the first session."""
    get_engine()


def reset_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session committed on success and rolled back on error.

    Loaded objects stay usable after the block since commits do not expire them.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
