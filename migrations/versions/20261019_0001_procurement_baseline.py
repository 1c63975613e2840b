"""procurement baseline: vendors, rfps, assignments, proposals

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _money() -> sa.Numeric:
    return sa.Numeric(15, 2, asdecimal=False)


def upgrade() -> None:
    op.create_table(
        "vendors",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("category", sa.String(120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_vendors_email"),
    )
    op.create_index("idx_vendors_category", "vendors", ["category"])

    op.create_table(
        "rfps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("original_input", sa.Text(), nullable=True),
        sa.Column("budget", _money(), nullable=True),
        sa.Column("currency", sa.String(10), nullable=False, server_default="USD"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivery_days", sa.Integer(), nullable=True),
        sa.Column("payment_terms", sa.String(255), nullable=True),
        sa.Column("warranty_terms", sa.String(255), nullable=True),
        sa.Column("additional_requirements", sa.JSON(), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_rfps_status", "rfps", ["status"])

    op.create_table(
        "rfp_items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("rfp_id", sa.String(36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("specifications", sa.JSON(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["rfp_id"], ["rfps.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rfp_items_rfp_id", "rfp_items", ["rfp_id"])

    op.create_table(
        "rfp_vendors",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("rfp_id", sa.String(36), nullable=False),
        sa.Column("vendor_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("message_id", sa.String(500), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["rfp_id"], ["rfps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("rfp_id", "vendor_id", name="uq_rfp_vendors_rfp_vendor"),
    )
    op.create_index("ix_rfp_vendors_rfp_id", "rfp_vendors", ["rfp_id"])
    op.create_index("idx_rfp_vendors_vendor_status", "rfp_vendors", ["vendor_id", "status"])

    op.create_table(
        "proposals",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("rfp_id", sa.String(36), nullable=False),
        sa.Column("vendor_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="received"),
        sa.Column("email_subject", sa.String(998), nullable=True),
        sa.Column("email_body", sa.Text(), nullable=True),
        sa.Column("email_message_id", sa.String(500), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=True),
        sa.Column("total_price", _money(), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("delivery_days", sa.Integer(), nullable=True),
        sa.Column("payment_terms", sa.String(255), nullable=True),
        sa.Column("warranty_terms", sa.String(255), nullable=True),
        sa.Column("validity_period", sa.String(255), nullable=True),
        sa.Column("additional_terms", sa.JSON(), nullable=True),
        sa.Column("parse_confidence", sa.Float(), nullable=True),
        sa.Column("raw_ai_data", sa.JSON(), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("ai_score", sa.Float(), nullable=True),
        sa.Column("score_breakdown", sa.JSON(), nullable=True),
        sa.Column("strengths", sa.JSON(), nullable=True),
        sa.Column("weaknesses", sa.JSON(), nullable=True),
        sa.Column("recommendation", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["rfp_id"], ["rfps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("rfp_id", "vendor_id", name="uq_proposals_rfp_vendor"),
    )
    op.create_index("ix_proposals_rfp_id", "proposals", ["rfp_id"])
    op.create_index("idx_proposals_rfp_status", "proposals", ["rfp_id", "status"])

    op.create_table(
        "proposal_items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("proposal_id", sa.String(36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", _money(), nullable=True),
        sa.Column("unit_price", _money(), nullable=True),
        sa.Column("total_price", _money(), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("specifications", sa.JSON(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["proposal_id"], ["proposals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_proposal_items_proposal_id", "proposal_items", ["proposal_id"])


def downgrade() -> None:
    op.drop_index("ix_proposal_items_proposal_id", table_name="proposal_items")
    op.drop_table("proposal_items")
    op.drop_index("idx_proposals_rfp_status", table_name="proposals")
    op.drop_index("ix_proposals_rfp_id", table_name="proposals")
    op.drop_table("proposals")
    op.drop_index("idx_rfp_vendors_vendor_status", table_name="rfp_vendors")
    op.drop_index("ix_rfp_vendors_rfp_id", table_name="rfp_vendors")
    op.drop_table("rfp_vendors")
    op.drop_index("ix_rfp_items_rfp_id", table_name="rfp_items")
    op.drop_table("rfp_items")
    op.drop_index("idx_rfps_status", table_name="rfps")
    op.drop_table("rfps")
    op.drop_index("idx_vendors_category", table_name="vendors")
    op.drop_table("vendors")
