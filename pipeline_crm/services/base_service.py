"""Session ownership shared by the store-backed services."""

from __future__ import annotations

from sqlalchemy.orm import Session

from pipeline_crm.database.db import SessionLocal


class BaseService:
    """Wrap a SQLAlchemy session; a session opened here is closed here."""

    def __init__(self, db: Session | None = None) -> None:
        self._owns_session = db is None
        self.db = db if db is not None else SessionLocal()

    def commit(self) -> None:
        """Commit, rolling back before the error propagates."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def close(self) -> None:
        if self._owns_session:
            self.db.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.db.rollback()
        self.close()
