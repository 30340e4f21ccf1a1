"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from pipeline_crm.core.config import Config, get_config
from pipeline_crm.database.db import get_db
from pipeline_crm.services.prospect_service import ProspectService


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_prospect_service(db: Session = Depends(get_db_session)) -> ProspectService:
    """Request-scoped prospect service bound to the request's session."""
    return ProspectService(db=db)
