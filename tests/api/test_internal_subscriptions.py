from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.api.routes import internal_subscriptions
from app.economy.subscriptions.service import SubscriptionEntitlementService
from app.economy.subscriptions.types import (
    EntitlementApplyOutcome,
    EntitlementApplyResult,
    EntitlementDecision,
    EntitlementSnapshot,
    EntitlementStatus,
    SubscriptionPlan,
)
from app.main import app
from tests.helpers import DummySessionLocal

UTC = timezone.utc
PERIOD_END = datetime(2026, 6, 10, 12, 0, tzinfo=UTC)
HEADERS = {"X-Internal-Token": "internal-secret"}


def _settings() -> SimpleNamespace:
    return SimpleNamespace(
        internal_api_token="internal-secret",
        internal_api_allowlist="127.0.0.1/32",
        internal_api_trusted_proxies="",
        app_store_bundle_id="com.example.sixdegrees",
    )


def _snapshot(status: EntitlementStatus = EntitlementStatus.ACTIVE) -> EntitlementSnapshot:
    return EntitlementSnapshot(
        original_transaction_id="2000000123",
        user_id="user-42",
        product_id="six_degrees_premium_monthly",
        plan=SubscriptionPlan.MONTHLY,
        status=status,
        current_period_ends_at=PERIOD_END,
        auto_renew_enabled=True,
    )


def _notification() -> dict[str, object]:
    return {
        "notificationType": "SUBSCRIBED",
        "transactionInfo": {
            "originalTransactionId": "2000000123",
            "productId": "six_degrees_premium_monthly",
            "bundleId": "com.example.sixdegrees",
            "expiresDate": int(PERIOD_END.timestamp() * 1000),
        },
    }


def test_subscription_event_rejects_missing_token(monkeypatch) -> None:
    monkeypatch.setattr(internal_subscriptions, "get_settings", _settings)

    client = TestClient(app, client=("127.0.0.1", 5300))
    response = client.post("/internal/subscriptions/events", json=_notification())

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_subscription_event_applies_verified_notification(monkeypatch) -> None:
    seen: list[object] = []

    async def _apply_verified_event(session, *, event, now_utc):
        seen.append(event)
        return EntitlementApplyResult(
            outcome=EntitlementApplyOutcome.CREATED,
            decision=EntitlementDecision(
                status=EntitlementStatus.ACTIVE,
                should_update=True,
                current_period_ends_at=PERIOD_END,
                auto_renew_enabled=True,
            ),
            entitlement=_snapshot(),
        )

    monkeypatch.setattr(internal_subscriptions, "get_settings", _settings)
    monkeypatch.setattr(internal_subscriptions, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(SubscriptionEntitlementService, "apply_verified_event", _apply_verified_event)

    client = TestClient(app, client=("127.0.0.1", 5301))
    response = client.post("/internal/subscriptions/events", json=_notification(), headers=HEADERS)

    assert response.status_code == 200
    payload = response.json()
    assert payload["outcome"] == "created"
    assert payload["applied"] is True
    assert payload["entitlement"]["status"] == "active"
    assert payload["entitlement"]["entitled"] is True
    assert seen[0].transaction.expires_date == PERIOD_END


def test_subscription_event_rejects_invalid_payload(monkeypatch) -> None:
    monkeypatch.setattr(internal_subscriptions, "get_settings", _settings)

    client = TestClient(app, client=("127.0.0.1", 5302))
    response = client.post(
        "/internal/subscriptions/events",
        json={"notificationType": "SUBSCRIBED"},
        headers=HEADERS,
    )

    assert response.status_code == 422
    assert response.json() == {"detail": {"code": "E_SUBSCRIPTION_PAYLOAD_INVALID"}}


def test_get_entitlement_returns_404_for_unknown_transaction(monkeypatch) -> None:
    async def _get_entitlement(session, original_transaction_id):
        return None

    monkeypatch.setattr(internal_subscriptions, "get_settings", _settings)
    monkeypatch.setattr(internal_subscriptions, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(SubscriptionEntitlementService, "get_entitlement", _get_entitlement)

    client = TestClient(app, client=("127.0.0.1", 5303))
    response = client.get("/internal/subscriptions/missing", headers=HEADERS)

    assert response.status_code == 404
    assert response.json() == {"detail": {"code": "E_ENTITLEMENT_NOT_FOUND"}}


def test_get_entitlement_reports_billing_retry_as_not_entitled(monkeypatch) -> None:
    async def _get_entitlement(session, original_transaction_id):
        return _snapshot(EntitlementStatus.BILLING_RETRY)

    monkeypatch.setattr(internal_subscriptions, "get_settings", _settings)
    monkeypatch.setattr(internal_subscriptions, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(SubscriptionEntitlementService, "get_entitlement", _get_entitlement)

    client = TestClient(app, client=("127.0.0.1", 5304))
    response = client.get("/internal/subscriptions/2000000123", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "billing_retry"
    assert response.json()["entitled"] is False
