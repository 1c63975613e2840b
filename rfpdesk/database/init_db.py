"""Schema bootstrap: Alembic upgrade to head, then ``create_all`` as a safety net."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from rfpdesk.core.startup import bootstrap
from rfpdesk.database import db as db_module
from rfpdesk.models import Base

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"


def _build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def init_db() -> None:
    bootstrap()
    active_url = db_module.get_active_database_url()
    if ALEMBIC_INI.exists():
        command.upgrade(_build_alembic_config(active_url), "head")
    else:
        logger.warning(
            "database.migrations.unavailable",
            extra={"event": "database.migrations.unavailable", "alembic_ini": str(ALEMBIC_INI)},
        )

    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info(
        "database.tables.created",
        extra={"event": "database.tables.created", "database_url_scheme": active_url.split("://", 1)[0]},
    )


if __name__ == "__main__":
    init_db()
