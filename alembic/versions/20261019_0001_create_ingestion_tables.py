"""create accounts, datasets, reference and canonical row tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _canonical_row_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dataset_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _canonical_row_constraints() -> list[sa.schema.SchemaItem]:
    return [
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["dataset_id"], ["datasets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_accounts_name", "accounts", ["name"], unique=False)

    op.create_table(
        "datasets",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dataset_type", sa.String(length=50), nullable=False),
        sa.Column("original_filename", sa.String(length=512), nullable=False),
        sa.Column("storage_path", sa.String(length=1024), nullable=False),
        sa.Column("detected_headers", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=True),
        sa.Column("min_date", sa.Date(), nullable=True),
        sa.Column("max_date", sa.Date(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_datasets_account_id", "datasets", ["account_id"], unique=False)
    op.create_index("ix_datasets_status", "datasets", ["status"], unique=False)
    op.create_index("ix_datasets_account_status", "datasets", ["account_id", "status"], unique=False)

    op.create_table(
        "product_aliases",
        sa.Column("alias", sa.String(length=255), nullable=False),
        sa.Column("product_key", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("alias"),
    )

    op.create_table(
        "corporate_account_mappings",
        sa.Column("corporate_account_name", sa.String(length=512), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("corporate_account_name"),
    )
    op.create_index(
        "ix_corporate_account_mappings_account_id",
        "corporate_account_mappings",
        ["account_id"],
        unique=False,
    )

    op.create_table(
        "manual_adjustment_rows",
        *_canonical_row_columns(),
        sa.Column("usage_date", sa.Date(), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=True),
        sa.Column("reason_type", sa.String(length=255), nullable=True),
        sa.Column("reason_comment", sa.Text(), nullable=True),
        sa.Column("product_name", sa.String(length=255), nullable=True),
        sa.Column("product_key", sa.String(length=255), nullable=False),
        sa.Column("tokens_consumed", sa.Numeric(18, 4), nullable=True),
        sa.Column("raw_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_canonical_row_constraints(),
    )
    op.create_index("ix_manual_adjustment_rows_dataset_id", "manual_adjustment_rows", ["dataset_id"], unique=False)
    op.create_index(
        "ix_manual_adjustment_rows_account_date",
        "manual_adjustment_rows",
        ["account_id", "usage_date"],
        unique=False,
    )

    op.create_table(
        "raw_usage_rows",
        *_canonical_row_columns(),
        sa.Column("usage_layout", sa.String(length=50), nullable=False),
        sa.Column("usage_date", sa.Date(), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("product_key", sa.String(length=255), nullable=False),
        sa.Column("user_key", sa.String(length=320), nullable=False),
        sa.Column("project_key", sa.String(length=512), nullable=True),
        sa.Column("tokens_consumed", sa.Numeric(18, 4), nullable=True),
        sa.Column("usage_hours", sa.Numeric(18, 4), nullable=True),
        sa.Column("use_count", sa.Integer(), nullable=True),
        sa.Column("event_count", sa.Integer(), nullable=True),
        sa.Column("dimensions", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_canonical_row_constraints(),
    )
    op.create_index("ix_raw_usage_rows_dataset_id", "raw_usage_rows", ["dataset_id"], unique=False)
    op.create_index("ix_raw_usage_rows_account_date", "raw_usage_rows", ["account_id", "usage_date"], unique=False)
    op.create_index("ix_raw_usage_rows_account_product", "raw_usage_rows", ["account_id", "product_key"], unique=False)

    op.create_table(
        "quota_attainment_transactions",
        *_canonical_row_columns(),
        sa.Column("commission_month", sa.String(length=32), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("fiscal_year", sa.Integer(), nullable=False),
        sa.Column("corporate_account_name", sa.String(length=512), nullable=False),
        sa.Column("sales_rep_name", sa.String(length=255), nullable=True),
        sa.Column("order_number", sa.String(length=255), nullable=True),
        sa.Column("agreement_id", sa.String(length=255), nullable=True),
        sa.Column("currency_code", sa.String(length=16), nullable=True),
        sa.Column("plan_currency", sa.String(length=16), nullable=True),
        sa.Column("final_credited_amount", sa.Numeric(18, 4), nullable=True),
        sa.Column("invoice_amt_dc", sa.Numeric(18, 4), nullable=True),
        sa.Column("annual_inv_amt_dc", sa.Numeric(18, 4), nullable=True),
        sa.Column("total_days", sa.Numeric(18, 4), nullable=True),
        sa.Column("trigger_multiplier", sa.Numeric(18, 6), nullable=True),
        sa.Column("multiplier_factor", sa.Numeric(18, 6), nullable=True),
        sa.Column("original_order_date", sa.Date(), nullable=True),
        sa.Column("contract_start_date", sa.Date(), nullable=True),
        sa.Column("contract_end_date", sa.Date(), nullable=True),
        sa.Column("settlement_start_date", sa.Date(), nullable=True),
        sa.Column("settlement_end_date", sa.Date(), nullable=True),
        sa.Column("load_date", sa.Date(), nullable=True),
        sa.Column("attributes", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_canonical_row_constraints(),
    )
    op.create_index(
        "ix_quota_attainment_transactions_dataset_id",
        "quota_attainment_transactions",
        ["dataset_id"],
        unique=False,
    )
    op.create_index(
        "ix_quota_attainment_transactions_account_fy",
        "quota_attainment_transactions",
        ["account_id", "fiscal_year"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_quota_attainment_transactions_account_fy", table_name="quota_attainment_transactions")
    op.drop_index("ix_quota_attainment_transactions_dataset_id", table_name="quota_attainment_transactions")
    op.drop_table("quota_attainment_transactions")
    op.drop_index("ix_raw_usage_rows_account_product", table_name="raw_usage_rows")
    op.drop_index("ix_raw_usage_rows_account_date", table_name="raw_usage_rows")
    op.drop_index("ix_raw_usage_rows_dataset_id", table_name="raw_usage_rows")
    op.drop_table("raw_usage_rows")
    op.drop_index("ix_manual_adjustment_rows_account_date", table_name="manual_adjustment_rows")
    op.drop_index("ix_manual_adjustment_rows_dataset_id", table_name="manual_adjustment_rows")
    op.drop_table("manual_adjustment_rows")
    op.drop_index("ix_corporate_account_mappings_account_id", table_name="corporate_account_mappings")
    op.drop_table("corporate_account_mappings")
    op.drop_table("product_aliases")
    op.drop_index("ix_datasets_account_status", table_name="datasets")
    op.drop_index("ix_datasets_status", table_name="datasets")
    op.drop_index("ix_datasets_account_id", table_name="datasets")
    op.drop_table("datasets")
    op.drop_index("ix_accounts_name", table_name="accounts")
    op.drop_table("accounts")
