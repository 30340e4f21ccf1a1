"""Process startup: logging, store connectivity and local schema creation."""

from __future__ import annotations

import logging

from pipeline_crm.core.config import get_config
from pipeline_crm.core.logging_config import configure_logging
from pipeline_crm.database.db import create_tables, get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> bool:
    """Check that the store is reachable; returns the connectivity result.

    An unreachable store is fatal only when ``DB_CONNECTIVITY_REQUIRED`` is set.
    """
    config = get_config()
    database_url = get_active_database_url()
    reachable = verify_database_connection()

    if not reachable:
        if config.DB_CONNECTIVITY_REQUIRED:
            raise RuntimeError("Database connectivity check failed.")
        logger.warning("startup.database.unreachable", extra={"event": "startup.database.unreachable"})
    if config.is_production and database_url.startswith("sqlite"):
        logger.warning("startup.production.sqlite_detected", extra={"event": "startup.production.sqlite_detected"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": database_url.split("://", 1)[0],
            "currency": config.CURRENCY,
        },
    )
    return reachable


def bootstrap() -> None:
    """Run once per process before serving the API or the operator UI."""
    configure_logging()
    reachable = validate_startup_config()
    if reachable and get_config().DB_AUTO_CREATE:
        create_tables()
        logger.info("startup.database.tables_ready", extra={"event": "startup.database.tables_ready"})
