"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from rfpdesk.core.config import get_config
from rfpdesk.core.logging_config import configure_logging
from rfpdesk.database.db import get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> None:
    """Fail-fast config and connectivity checks."""
    config = get_config()
    active_database_url = get_active_database_url()
    if not verify_database_connection():
        raise RuntimeError("Database connectivity check failed.")

    if config.is_production and active_database_url.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )

    transport = config.transport()
    if not transport.smtp_configured and not transport.sandbox_mode:
        logger.warning("startup.smtp.not_configured", extra={"event": "startup.smtp.not_configured"})
    if not transport.imap_configured:
        logger.warning("startup.imap.not_configured", extra={"event": "startup.imap.not_configured"})
    if config.LLM_PROVIDER == "gemini" and not config.LLM_API_KEY:
        logger.warning("startup.llm.api_key_missing", extra={"event": "startup.llm.api_key_missing"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "llm_provider": config.LLM_PROVIDER,
        },
    )


def bootstrap() -> None:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    validate_startup_config()
