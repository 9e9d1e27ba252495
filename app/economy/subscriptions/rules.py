from __future__ import annotations

from datetime import datetime

from app.economy.subscriptions.types import (
    EntitlementDecision,
    EntitlementStatus,
    StoredEntitlement,
    SubscriptionPlan,
    VerifiedRenewalInfo,
    VerifiedTransaction,
)

ANNUAL_PRODUCT_MARKERS = ("annual", "yearly")
ENTITLED_STATUSES = frozenset({EntitlementStatus.ACTIVE, EntitlementStatus.GRACE_PERIOD})


def is_stale(transaction: VerifiedTransaction, stored: StoredEntitlement | None) -> bool:
    if stored is None or stored.current_period_ends_at is None:
        return False
    if transaction.expires_date is None:
        return False
    return transaction.expires_date < stored.current_period_ends_at


def _derive_status(
    transaction: VerifiedTransaction,
    renewal_info: VerifiedRenewalInfo | None,
    *,
    now_utc: datetime,
) -> EntitlementStatus:
    if transaction.revocation_date is not None:
        return EntitlementStatus.REVOKED

    if transaction.expires_date is not None and transaction.expires_date < now_utc:
        grace_ends = renewal_info.grace_period_expires_date if renewal_info else None
        if grace_ends is not None and grace_ends > now_utc:
            return EntitlementStatus.GRACE_PERIOD
        if renewal_info is not None and renewal_info.is_in_billing_retry_period:
            return EntitlementStatus.BILLING_RETRY
        return EntitlementStatus.EXPIRED

    return EntitlementStatus.ACTIVE


def apply_event(
    transaction: VerifiedTransaction,
    renewal_info: VerifiedRenewalInfo | None,
    stored: StoredEntitlement | None,
    *,
    now_utc: datetime,
) -> EntitlementDecision:
    """Derives entitlement state from one verified event, newer expiry wins.

    An event whose expiry is older than the stored period end is a late or
    redelivered notification: it is rejected and the stored state is echoed
    back unchanged. The stored period end never moves backwards.
    """
    if stored is not None and is_stale(transaction, stored):
        return EntitlementDecision(
            status=stored.status,
            should_update=False,
            current_period_ends_at=stored.current_period_ends_at,
            auto_renew_enabled=stored.auto_renew_enabled,
        )

    auto_renew_enabled = True
    if renewal_info is not None and renewal_info.auto_renew_enabled is not None:
        auto_renew_enabled = renewal_info.auto_renew_enabled

    current_period_ends_at = transaction.expires_date
    if current_period_ends_at is None and stored is not None:
        current_period_ends_at = stored.current_period_ends_at

    return EntitlementDecision(
        status=_derive_status(transaction, renewal_info, now_utc=now_utc),
        should_update=True,
        current_period_ends_at=current_period_ends_at,
        auto_renew_enabled=auto_renew_enabled,
    )


def plan_for_product(product_id: str) -> SubscriptionPlan:
    normalized = product_id.lower()
    if any(marker in normalized for marker in ANNUAL_PRODUCT_MARKERS):
        return SubscriptionPlan.ANNUAL
    return SubscriptionPlan.MONTHLY


def is_entitled(status: EntitlementStatus) -> bool:
    return status in ENTITLED_STATUSES
