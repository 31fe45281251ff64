"""reconciliation tables

Revision ID: 0001
Revises:
Create Date: 2025-03-01 11:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reconciliation_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("supplier_names", sa.Text(), nullable=False, server_default=""),
        sa.Column("destination_countries", sa.Text(), nullable=False, server_default=""),
        sa.Column("cutoff_time", sa.Time(), nullable=False),
        sa.Column("cip_time", sa.Time(), nullable=True),
        sa.Column("min_value_usd", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("usd_to_inr_rate", sa.Numeric(12, 4), nullable=False, server_default="1"),
        sa.Column("max_shipments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("admin_emails", sa.Text(), nullable=False, server_default=""),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_reconciliation_settings_created_at", "reconciliation_settings", ["created_at"])

    op.create_table(
        "reconciliation_shipments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shipment_id", sa.String(64), nullable=False),
        sa.Column("supplier_name", sa.String(255), nullable=True),
        sa.Column("destination_country", sa.String(16), nullable=True),
        sa.Column("policy_id", sa.String(128), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_reconciliation_shipments_shipment_id", "reconciliation_shipments", ["shipment_id"], unique=True)
    op.create_index("ix_reconciliation_shipments_supplier_name", "reconciliation_shipments", ["supplier_name"])
    op.create_index("ix_reconciliation_shipments_policy_id", "reconciliation_shipments", ["policy_id"])
    op.create_index("ix_reconciliation_shipments_created_at", "reconciliation_shipments", ["created_at"])

    op.create_table(
        "reconciliation_error_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("job_name", sa.String(100), nullable=False),
        sa.Column("error_type", sa.String(50), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("error_details", postgresql.JSONB(), nullable=True),
        sa.Column("execution_date", sa.String(10), nullable=True),
        sa.Column("shipment_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_reconciliation_error_logs_job_name", "reconciliation_error_logs", ["job_name"])
    op.create_index("ix_reconciliation_error_logs_error_type", "reconciliation_error_logs", ["error_type"])
    op.create_index("ix_reconciliation_error_logs_shipment_id", "reconciliation_error_logs", ["shipment_id"])
    op.create_index("ix_reconciliation_error_logs_created_at", "reconciliation_error_logs", ["created_at"])

    op.create_table(
        "reconciliation_runs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("job_name", sa.String(100), nullable=False),
        sa.Column("flow_type", sa.String(50), nullable=False),
        sa.Column("variant", sa.String(50), nullable=False),
        sa.Column("target_date", sa.String(10), nullable=True),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("state", sa.String(50), nullable=False),
        sa.Column("total_listed", sa.Integer(), nullable=True),
        sa.Column("valid_found", sa.Integer(), nullable=True),
        sa.Column("processed", sa.Integer(), nullable=True),
        sa.Column("succeeded", sa.Integer(), nullable=True),
        sa.Column("failed", sa.Integer(), nullable=True),
        sa.Column("skipped", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("settings_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("summary", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_reconciliation_runs_job_name", "reconciliation_runs", ["job_name"])
    op.create_index("ix_reconciliation_runs_target_date", "reconciliation_runs", ["target_date"])
    op.create_index("ix_reconciliation_runs_status", "reconciliation_runs", ["status"])
    op.create_index("ix_reconciliation_runs_started_at", "reconciliation_runs", ["started_at"])


def downgrade() -> None:
    op.drop_table("reconciliation_runs")
    op.drop_table("reconciliation_error_logs")
    op.drop_table("reconciliation_shipments")
    op.drop_table("reconciliation_settings")
