from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.subscription_entitlements import SubscriptionEntitlement
from app.db.repo.subscription_entitlements_repo import SubscriptionEntitlementsRepo
from app.db.repo.subscription_notifications_repo import SubscriptionNotificationsRepo
from app.economy.subscriptions.rules import apply_event, plan_for_product
from app.economy.subscriptions.types import (
    EntitlementApplyOutcome,
    EntitlementApplyResult,
    EntitlementSnapshot,
    EntitlementStatus,
    StoredEntitlement,
    SubscriptionPlan,
    VerifiedEvent,
)

logger = structlog.get_logger(__name__)


def _stored_from_row(row: SubscriptionEntitlement) -> StoredEntitlement:
    return StoredEntitlement(
        status=EntitlementStatus(row.status),
        current_period_ends_at=row.current_period_ends_at,
        auto_renew_enabled=bool(row.auto_renew_enabled),
    )


def snapshot_from_row(row: SubscriptionEntitlement) -> EntitlementSnapshot:
    return EntitlementSnapshot(
        original_transaction_id=row.original_transaction_id,
        user_id=row.user_id,
        product_id=row.product_id,
        plan=SubscriptionPlan(row.plan),
        status=EntitlementStatus(row.status),
        current_period_ends_at=row.current_period_ends_at,
        auto_renew_enabled=bool(row.auto_renew_enabled),
    )


class SubscriptionEntitlementService:
    @staticmethod
    async def apply_verified_event(
        session: AsyncSession,
        *,
        event: VerifiedEvent,
        now_utc: datetime,
    ) -> EntitlementApplyResult:
        transaction = event.transaction
        original_transaction_id = transaction.original_transaction_id
        log = logger.bind(
            original_transaction_id=original_transaction_id,
            notification_type=event.notification_type,
            notification_uuid=event.notification_uuid,
        )

        if event.notification_uuid is not None:
            first_delivery = await SubscriptionNotificationsRepo.create_once(
                session,
                notification_uuid=event.notification_uuid,
                original_transaction_id=original_transaction_id,
                notification_type=event.notification_type,
                subtype=event.subtype,
                received_at=now_utc,
            )
            if not first_delivery:
                existing = await SubscriptionEntitlementsRepo.get_by_original_transaction_id(
                    session,
                    original_transaction_id,
                )
                log.info("subscription_event_duplicate")
                return EntitlementApplyResult(
                    outcome=EntitlementApplyOutcome.DUPLICATE,
                    decision=None,
                    entitlement=snapshot_from_row(existing) if existing is not None else None,
                )

        row = await SubscriptionEntitlementsRepo.get_for_update(session, original_transaction_id)
        if row is None:
            decision = apply_event(transaction, event.renewal_info, None, now_utc=now_utc)
            created = await SubscriptionEntitlementsRepo.create_once(
                session,
                original_transaction_id=original_transaction_id,
                user_id=event.user_id,
                product_id=transaction.product_id,
                plan=plan_for_product(transaction.product_id).value,
                status=decision.status.value,
                current_period_ends_at=decision.current_period_ends_at,
                auto_renew_enabled=decision.auto_renew_enabled,
                last_transaction_id=transaction.transaction_id,
                last_notification_type=event.notification_type,
                now_utc=now_utc,
            )
            row = await SubscriptionEntitlementsRepo.get_for_update(session, original_transaction_id)
            if created and row is not None:
                log.info(
                    "subscription_entitlement_created",
                    status=decision.status.value,
                    current_period_ends_at=decision.current_period_ends_at,
                )
                return EntitlementApplyResult(
                    outcome=EntitlementApplyOutcome.CREATED,
                    decision=decision,
                    entitlement=snapshot_from_row(row),
                )
            if row is None:
                raise LookupError(f"entitlement {original_transaction_id} vanished after insert")

        decision = apply_event(transaction, event.renewal_info, _stored_from_row(row), now_utc=now_utc)
        if not decision.should_update:
            log.info(
                "subscription_event_stale_rejected",
                incoming_expires_date=transaction.expires_date,
                stored_period_ends_at=row.current_period_ends_at,
                stored_status=row.status,
            )
            return EntitlementApplyResult(
                outcome=EntitlementApplyOutcome.STALE_REJECTED,
                decision=decision,
                entitlement=snapshot_from_row(row),
            )

        previous_status = row.status
        row.status = decision.status.value
        row.current_period_ends_at = decision.current_period_ends_at
        row.auto_renew_enabled = decision.auto_renew_enabled
        row.product_id = transaction.product_id
        row.plan = plan_for_product(transaction.product_id).value
        row.last_transaction_id = transaction.transaction_id or row.last_transaction_id
        row.last_notification_type = event.notification_type
        if row.user_id is None and event.user_id is not None:
            row.user_id = event.user_id
        row.updated_at = now_utc
        await session.flush()

        log.info(
            "subscription_entitlement_updated",
            previous_status=previous_status,
            status=decision.status.value,
            current_period_ends_at=decision.current_period_ends_at,
            auto_renew_enabled=decision.auto_renew_enabled,
        )
        return EntitlementApplyResult(
            outcome=EntitlementApplyOutcome.APPLIED,
            decision=decision,
            entitlement=snapshot_from_row(row),
        )

    @staticmethod
    async def get_entitlement(
        session: AsyncSession,
        original_transaction_id: str,
    ) -> EntitlementSnapshot | None:
        row = await SubscriptionEntitlementsRepo.get_by_original_transaction_id(session, original_transaction_id)
        if row is None:
            return None
        return snapshot_from_row(row)
