from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EntitlementStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"
    BILLING_RETRY = "billing_retry"
    GRACE_PERIOD = "grace_period"


class SubscriptionPlan(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class EntitlementApplyOutcome(str, Enum):
    CREATED = "created"
    APPLIED = "applied"
    STALE_REJECTED = "stale_rejected"
    DUPLICATE = "duplicate"


@dataclass(frozen=True, slots=True)
class VerifiedTransaction:
    original_transaction_id: str
    product_id: str
    expires_date: datetime | None = None
    revocation_date: datetime | None = None
    transaction_id: str | None = None


@dataclass(frozen=True, slots=True)
class VerifiedRenewalInfo:
    auto_renew_enabled: bool | None = None
    grace_period_expires_date: datetime | None = None
    is_in_billing_retry_period: bool = False


@dataclass(frozen=True, slots=True)
class VerifiedEvent:
    notification_type: str
    transaction: VerifiedTransaction
    renewal_info: VerifiedRenewalInfo | None = None
    notification_uuid: str | None = None
    subtype: str | None = None
    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class StoredEntitlement:
    status: EntitlementStatus
    current_period_ends_at: datetime | None
    auto_renew_enabled: bool


@dataclass(frozen=True, slots=True)
class EntitlementDecision:
    status: EntitlementStatus
    should_update: bool
    current_period_ends_at: datetime | None
    auto_renew_enabled: bool


@dataclass(frozen=True, slots=True)
class EntitlementSnapshot:
    original_transaction_id: str
    user_id: str | None
    product_id: str
    plan: SubscriptionPlan
    status: EntitlementStatus
    current_period_ends_at: datetime | None
    auto_renew_enabled: bool


@dataclass(frozen=True, slots=True)
class EntitlementApplyResult:
    outcome: EntitlementApplyOutcome
    decision: EntitlementDecision | None
    entitlement: EntitlementSnapshot | None
