"""Engine and session management for the prospect store."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pipeline_crm.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL


def _engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": config.DEBUG and config.LOG_LEVEL == "DEBUG"}
    if database_url.startswith("sqlite"):
        # Streamlit and the API share sessions across threads.
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            options["poolclass"] = StaticPool
        return options
    options.update(pool_pre_ping=True, pool_recycle=3600, pool_size=10, max_overflow=20)
    return options


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    previous = globals().get("engine")
    if previous is not None:
        previous.dispose()
    DATABASE_URL = database_url
    engine = create_engine(database_url, **_engine_options(database_url))
    # Services hand prospects back to callers after commit.
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


_configure_engine(DATABASE_URL)


def get_engine() -> Engine:
    return engine


def get_active_database_url() -> str:
    return DATABASE_URL


def reset_engine(database_url: str | None = None) -> None:
    """Point the module at another database, or rebuild the current engine."""
    _configure_engine(database_url or DATABASE_URL)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session for FastAPI dependencies."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session for scripts and the operator UI; always closed on exit."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create the prospect tables on the active engine (local/dev use)."""
    from pipeline_crm.models import Base

    Base.metadata.create_all(bind=engine)


def verify_database_connection() -> bool:
    """Return whether the store answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - exercised in deployment.
        logger.log(
            logging.ERROR if config.DB_CONNECTIVITY_REQUIRED else logging.WARNING,
            "database.connection_failed",
            extra={
                "event": "database.connection_failed",
                "database": engine.url.render_as_string(hide_password=True),
                "error": str(exc),
            },
        )
        return False
    return True
