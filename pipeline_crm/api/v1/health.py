"""Liveness and store reachability for API v1."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pipeline_crm.core.config import get_config
from pipeline_crm.core.dependencies import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db_session)) -> dict:
    cfg = get_config()
    try:
        db.execute(text("SELECT 1"))
        store = "ok"
    except SQLAlchemyError as exc:
        logger.warning("health.store_unreachable", extra={"event": "health.store_unreachable", "error": str(exc)})
        store = "unreachable"
    return {
        "status": "ok" if store == "ok" else "degraded",
        "store": store,
        "service": cfg.APP_NAME,
        "version": cfg.APP_VERSION,
    }
