"""subscription_entitlements

Revision ID: b4a9c2e1f605
Revises: 7d2e4b6a8c13
Create Date: 2026-10-09 11:45:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "b4a9c2e1f605"
down_revision: str | None = "7d2e4b6a8c13"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "subscription_entitlements",
        sa.Column("original_transaction_id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("product_id", sa.String(128), nullable=False),
        sa.Column("plan", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("current_period_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_renew_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_transaction_id", sa.String(64), nullable=True),
        sa.Column("last_notification_type", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "status IN ('active','expired','revoked','billing_retry','grace_period')",
            name="ck_subscription_entitlements_status",
        ),
        sa.CheckConstraint("plan IN ('monthly','annual')", name="ck_subscription_entitlements_plan"),
    )
    op.create_index("idx_subscription_entitlements_user", "subscription_entitlements", ["user_id"])
    op.create_index(
        "idx_subscription_entitlements_period_end",
        "subscription_entitlements",
        ["current_period_ends_at"],
    )

    op.create_table(
        "subscription_notifications",
        sa.Column("notification_uuid", sa.String(64), primary_key=True),
        sa.Column("original_transaction_id", sa.String(64), nullable=False),
        sa.Column("notification_type", sa.String(64), nullable=False),
        sa.Column("subtype", sa.String(64), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_subscription_notifications_original_tx",
        "subscription_notifications",
        ["original_transaction_id"],
    )


def downgrade() -> None:
    op.drop_index("idx_subscription_notifications_original_tx", table_name="subscription_notifications")
    op.drop_table("subscription_notifications")
    op.drop_index("idx_subscription_entitlements_period_end", table_name="subscription_entitlements")
    op.drop_index("idx_subscription_entitlements_user", table_name="subscription_entitlements")
    op.drop_table("subscription_entitlements")
