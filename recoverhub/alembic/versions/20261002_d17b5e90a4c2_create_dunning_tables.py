"""create dunning_templates and dunning_emails tables

Revision ID: d17b5e90a4c2
Revises: 8c4e2a6b1f37
Create Date: 2026-10-02 10:15:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "d17b5e90a4c2"
down_revision = "8c4e2a6b1f37"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "dunning_templates",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("body_html", sa.Text(), nullable=False),
        sa.Column("body_text", sa.Text(), nullable=False),
        sa.Column("delay_days", sa.Integer(), nullable=False),
        sa.Column("sequence_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_dunning_templates_merchant_id"),
        "dunning_templates",
        ["merchant_id"],
        unique=False,
    )

    op.create_table(
        "dunning_emails",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("failed_payment_id", sa.String(length=36), nullable=False),
        sa.Column("template_id", sa.String(length=36), nullable=True),
        sa.Column("email_to", sa.String(length=255), nullable=False),
        sa.Column("email_subject", sa.String(length=500), nullable=False),
        sa.Column("provider_message_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("clicked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["failed_payment_id"], ["failed_payments.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["template_id"], ["dunning_templates.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "failed_payment_id", "template_id", name="uq_dunning_emails_payment_template"
        ),
    )
    op.create_index(
        op.f("ix_dunning_emails_failed_payment_id"),
        "dunning_emails",
        ["failed_payment_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_dunning_emails_provider_message_id"),
        "dunning_emails",
        ["provider_message_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_dunning_emails_provider_message_id"), table_name="dunning_emails")
    op.drop_index(op.f("ix_dunning_emails_failed_payment_id"), table_name="dunning_emails")
    op.drop_table("dunning_emails")
    op.drop_index(op.f("ix_dunning_templates_merchant_id"), table_name="dunning_templates")
    op.drop_table("dunning_templates")
