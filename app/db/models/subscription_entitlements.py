from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class SubscriptionEntitlement(Base):
    __tablename__ = "subscription_entitlements"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active','expired','revoked','billing_retry','grace_period')",
            name="ck_subscription_entitlements_status",
        ),
        CheckConstraint("plan IN ('monthly','annual')", name="ck_subscription_entitlements_plan"),
        Index("idx_subscription_entitlements_user", "user_id"),
        Index("idx_subscription_entitlements_period_end", "current_period_ends_at"),
    )

    original_transaction_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    product_id: Mapped[str] = mapped_column(String(128), nullable=False)
    plan: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    current_period_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    auto_renew_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("true"),
        default=True,
    )
    last_transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_notification_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
