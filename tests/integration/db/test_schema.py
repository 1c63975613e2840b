from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from rfpdesk.models import Base

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def test_metadata_contains_procurement_tables():
    expected = {"vendors", "rfps", "rfp_items", "rfp_vendors", "proposals", "proposal_items"}
    assert expected == set(Base.metadata.tables.keys())


def test_one_proposal_and_one_assignment_per_pair():
    proposal_uniques = {c.name for c in Base.metadata.tables["proposals"].constraints}
    assignment_uniques = {c.name for c in Base.metadata.tables["rfp_vendors"].constraints}
    assert "uq_proposals_rfp_vendor" in proposal_uniques
    assert "uq_rfp_vendors_rfp_vendor" in assignment_uniques


def test_migrations_build_the_same_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables.keys())
        columns = {column["name"] for column in inspect(engine).get_columns("proposals")}
        assert {"raw_ai_data", "score_breakdown", "email_message_id"} <= columns
    finally:
        engine.dispose()

    command.downgrade(cfg, "base")
