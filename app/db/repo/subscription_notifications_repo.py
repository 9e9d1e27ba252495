from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.subscription_notifications import SubscriptionNotification


class SubscriptionNotificationsRepo:
    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        notification_uuid: str,
        original_transaction_id: str,
        notification_type: str,
        subtype: str | None,
        received_at: datetime,
    ) -> bool:
        stmt = (
            insert(SubscriptionNotification)
            .values(
                notification_uuid=notification_uuid,
                original_transaction_id=original_transaction_id,
                notification_type=notification_type,
                subtype=subtype,
                received_at=received_at,
            )
            .on_conflict_do_nothing(index_elements=[SubscriptionNotification.notification_uuid])
            .returning(SubscriptionNotification.notification_uuid)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
