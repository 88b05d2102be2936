"""create failed_payments and retry_attempts tables

Revision ID: 8c4e2a6b1f37
Revises: 3f9a1c2b7d10
Create Date: 2026-10-01 09:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8c4e2a6b1f37"
down_revision = "3f9a1c2b7d10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "failed_payments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=False),
        sa.Column("gateway_connection_id", sa.String(length=36), nullable=False),
        sa.Column("external_invoice_id", sa.String(length=255), nullable=True),
        sa.Column("external_charge_id", sa.String(length=255), nullable=True),
        sa.Column("external_customer_id", sa.String(length=255), nullable=False),
        sa.Column("external_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("failure_code", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("recovery_started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recovered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["gateway_connection_id"], ["gateway_connections.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "gateway_connection_id",
            "external_invoice_id",
            name="uq_failed_payments_connection_invoice",
        ),
    )
    op.create_index(
        op.f("ix_failed_payments_merchant_id"), "failed_payments", ["merchant_id"], unique=False
    )
    op.create_index(
        op.f("ix_failed_payments_gateway_connection_id"),
        "failed_payments",
        ["gateway_connection_id"],
        unique=False,
    )
    op.create_index(op.f("ix_failed_payments_status"), "failed_payments", ["status"], unique=False)

    op.create_table(
        "retry_attempts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("failed_payment_id", sa.String(length=36), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("trigger", sa.String(length=20), nullable=False),
        sa.Column("schedule_step", sa.Integer(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error_code", sa.String(length=100), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["failed_payment_id"], ["failed_payments.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "failed_payment_id", "attempt_number", name="uq_retry_attempts_payment_number"
        ),
    )
    op.create_index(
        op.f("ix_retry_attempts_failed_payment_id"),
        "retry_attempts",
        ["failed_payment_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_retry_attempts_scheduled_at"), "retry_attempts", ["scheduled_at"], unique=False
    )
    op.create_index(op.f("ix_retry_attempts_status"), "retry_attempts", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_retry_attempts_status"), table_name="retry_attempts")
    op.drop_index(op.f("ix_retry_attempts_scheduled_at"), table_name="retry_attempts")
    op.drop_index(op.f("ix_retry_attempts_failed_payment_id"), table_name="retry_attempts")
    op.drop_table("retry_attempts")
    op.drop_index(op.f("ix_failed_payments_status"), table_name="failed_payments")
    op.drop_index(op.f("ix_failed_payments_gateway_connection_id"), table_name="failed_payments")
    op.drop_index(op.f("ix_failed_payments_merchant_id"), table_name="failed_payments")
    op.drop_table("failed_payments")
