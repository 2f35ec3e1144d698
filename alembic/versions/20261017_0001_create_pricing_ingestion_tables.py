"""create pricing ingestion tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "parameters",
        sa.Column("parameter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_pbm_specific", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("parameter_id"),
    )
    op.create_index("ix_parameters_is_active", "parameters", ["is_active"], unique=False)

    op.create_table(
        "parameter_valid_values",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("parameter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("pbm_id", sa.String(length=255), nullable=True),
        sa.Column("effective_from", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("effective_to", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parameter_id"], ["parameters.parameter_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_parameter_valid_values_parameter_id",
        "parameter_valid_values",
        ["parameter_id"],
        unique=False,
    )
    op.create_index(
        "ix_parameter_valid_values_parameter_pbm",
        "parameter_valid_values",
        ["parameter_id", "pbm_id"],
        unique=False,
    )

    op.create_table(
        "pricing_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=False),
        sa.Column("content_type", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("records_rejected", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("parameter_names", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("validation_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pricing_files_status", "pricing_files", ["status"], unique=False)
    op.create_index("ix_pricing_files_created_at", "pricing_files", ["created_at"], unique=False)

    op.create_table(
        "rejection_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("row_number", sa.Integer(), nullable=False),
        sa.Column("reason_code", sa.String(length=32), nullable=False),
        sa.Column("reason_description", sa.Text(), nullable=False),
        sa.Column("rejected_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["file_id"], ["pricing_files.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_rejection_logs_file_id_row_number",
        "rejection_logs",
        ["file_id", "row_number"],
        unique=False,
    )

    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("price_record_name", sa.String(length=255), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("parameters", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("source_file_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("source_row_number", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["source_file_id"], ["pricing_files.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_price_record_name", "products", ["price_record_name"], unique=False)
    op.create_index("ix_products_source_file_id", "products", ["source_file_id"], unique=False)
    op.create_index("ix_products_effective_date", "products", ["effective_date"], unique=False)

    op.create_table(
        "product_values",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("values", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", name="uq_product_values_product_id"),
    )


def downgrade() -> None:
    op.drop_table("product_values")
    op.drop_index("ix_products_effective_date", table_name="products")
    op.drop_index("ix_products_source_file_id", table_name="products")
    op.drop_index("ix_products_price_record_name", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_rejection_logs_file_id_row_number", table_name="rejection_logs")
    op.drop_table("rejection_logs")
    op.drop_index("ix_pricing_files_created_at", table_name="pricing_files")
    op.drop_index("ix_pricing_files_status", table_name="pricing_files")
    op.drop_table("pricing_files")
    op.drop_index("ix_parameter_valid_values_parameter_pbm", table_name="parameter_valid_values")
    op.drop_index("ix_parameter_valid_values_parameter_id", table_name="parameter_valid_values")
    op.drop_table("parameter_valid_values")
    op.drop_index("ix_parameters_is_active", table_name="parameters")
    op.drop_table("parameters")
