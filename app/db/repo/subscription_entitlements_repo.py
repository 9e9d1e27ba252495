from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.subscription_entitlements import SubscriptionEntitlement


class SubscriptionEntitlementsRepo:
    @staticmethod
    async def get_by_original_transaction_id(
        session: AsyncSession,
        original_transaction_id: str,
    ) -> SubscriptionEntitlement | None:
        return await session.get(SubscriptionEntitlement, original_transaction_id)

    @staticmethod
    async def get_for_update(
        session: AsyncSession,
        original_transaction_id: str,
    ) -> SubscriptionEntitlement | None:
        stmt = (
            select(SubscriptionEntitlement)
            .where(SubscriptionEntitlement.original_transaction_id == original_transaction_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_user_id(session: AsyncSession, user_id: str) -> list[SubscriptionEntitlement]:
        stmt = (
            select(SubscriptionEntitlement)
            .where(SubscriptionEntitlement.user_id == user_id)
            .order_by(SubscriptionEntitlement.current_period_ends_at.desc().nulls_last())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        original_transaction_id: str,
        user_id: str | None,
        product_id: str,
        plan: str,
        status: str,
        current_period_ends_at: datetime | None,
        auto_renew_enabled: bool,
        last_transaction_id: str | None,
        last_notification_type: str | None,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            insert(SubscriptionEntitlement)
            .values(
                original_transaction_id=original_transaction_id,
                user_id=user_id,
                product_id=product_id,
                plan=plan,
                status=status,
                current_period_ends_at=current_period_ends_at,
                auto_renew_enabled=auto_renew_enabled,
                last_transaction_id=last_transaction_id,
                last_notification_type=last_notification_type,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[SubscriptionEntitlement.original_transaction_id])
            .returning(SubscriptionEntitlement.original_transaction_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
