from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.economy.subscriptions.errors import SubscriptionPayloadError
from app.economy.subscriptions.payloads import parse_notification
from app.economy.subscriptions.rules import apply_event
from app.economy.subscriptions.types import EntitlementStatus

UTC = timezone.utc


def _raw(**overrides: object) -> dict[str, object]:
    raw: dict[str, object] = {
        "notificationType": "DID_RENEW",
        "notificationUUID": "3f1c6a0e-0000-4000-8000-000000000001",
        "userId": "user-42",
        "transactionInfo": {
            "originalTransactionId": "2000000123",
            "transactionId": "2000000456",
            "productId": "six_degrees_premium_monthly",
            "bundleId": "com.example.sixdegrees",
            "expiresDate": 1_780_000_000_000,
        },
        "renewalInfo": {
            "autoRenewStatus": 0,
            "isInBillingRetryPeriod": False,
        },
    }
    raw.update(overrides)
    return raw


def test_parse_notification_maps_provider_fields() -> None:
    event = parse_notification(_raw(), expected_bundle_id="com.example.sixdegrees")

    assert event.notification_type == "DID_RENEW"
    assert event.user_id == "user-42"
    assert event.transaction.original_transaction_id == "2000000123"
    assert event.transaction.expires_date == datetime.fromtimestamp(1_780_000_000, tz=UTC)
    assert event.transaction.revocation_date is None
    assert event.renewal_info is not None
    assert event.renewal_info.auto_renew_enabled is False
    assert event.renewal_info.grace_period_expires_date is None


def test_parse_notification_without_renewal_info() -> None:
    raw = _raw()
    raw.pop("renewalInfo")

    event = parse_notification(raw)

    assert event.renewal_info is None


def test_parse_notification_rejects_missing_transaction() -> None:
    raw = _raw()
    raw.pop("transactionInfo")

    with pytest.raises(SubscriptionPayloadError):
        parse_notification(raw)


def test_parse_notification_rejects_foreign_bundle() -> None:
    with pytest.raises(SubscriptionPayloadError, match="unexpected bundle id"):
        parse_notification(_raw(), expected_bundle_id="com.example.other")


def test_dates_without_offset_are_read_as_utc_and_reconcile() -> None:
    raw = _raw(
        transactionInfo={
            "originalTransactionId": "2000000123",
            "productId": "six_degrees_premium_monthly",
            "expiresDate": "2026-05-01T00:00:00",
        },
        renewalInfo={"gracePeriodExpiresDate": "2026-05-08T00:00:00", "isInBillingRetryPeriod": True},
    )

    event = parse_notification(raw)
    decision = apply_event(
        event.transaction,
        event.renewal_info,
        None,
        now_utc=datetime(2026, 5, 3, 12, 0, tzinfo=UTC),
    )

    assert event.transaction.expires_date == datetime(2026, 5, 1, tzinfo=UTC)
    assert event.renewal_info is not None
    assert event.renewal_info.grace_period_expires_date == datetime(2026, 5, 8, tzinfo=UTC)
    assert decision.status == EntitlementStatus.GRACE_PERIOD


def test_offset_dates_are_converted_to_utc() -> None:
    raw = _raw(
        transactionInfo={
            "originalTransactionId": "2000000123",
            "productId": "six_degrees_premium_monthly",
            "expiresDate": "2026-05-01T02:00:00+02:00",
        },
    )

    event = parse_notification(raw)

    assert event.transaction.expires_date == datetime(2026, 5, 1, tzinfo=UTC)
    assert event.transaction.expires_date.tzinfo == UTC
