from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from app.api.routes.internal_access import assert_internal_access
from app.core.config import get_settings
from app.db.session import SessionLocal
from app.economy.subscriptions.errors import SubscriptionPayloadError
from app.economy.subscriptions.payloads import parse_notification
from app.economy.subscriptions.rules import is_entitled
from app.economy.subscriptions.service import SubscriptionEntitlementService
from app.economy.subscriptions.types import EntitlementSnapshot

router = APIRouter(prefix="/internal/subscriptions", tags=["internal", "subscriptions"])
logger = structlog.get_logger(__name__)


class EntitlementView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_transaction_id: str = Field(alias="originalTransactionId")
    user_id: str | None = Field(default=None, alias="userId")
    product_id: str = Field(alias="productId")
    plan: str
    status: str
    current_period_ends_at: datetime | None = Field(default=None, alias="currentPeriodEndsAt")
    auto_renew_enabled: bool = Field(alias="autoRenewEnabled")
    entitled: bool


class SubscriptionEventResponse(BaseModel):
    outcome: str
    applied: bool
    entitlement: EntitlementView | None = None


def _entitlement_as_view(snapshot: EntitlementSnapshot) -> EntitlementView:
    return EntitlementView(
        original_transaction_id=snapshot.original_transaction_id,
        user_id=snapshot.user_id,
        product_id=snapshot.product_id,
        plan=snapshot.plan.value,
        status=snapshot.status.value,
        current_period_ends_at=snapshot.current_period_ends_at,
        auto_renew_enabled=snapshot.auto_renew_enabled,
        entitled=is_entitled(snapshot.status),
    )


def _assert_access(request: Request) -> None:
    assert_internal_access(
        request,
        settings=get_settings(),
        logger=logger,
        event="internal_subscriptions_auth_failed",
    )


@router.post("/events", response_model=SubscriptionEventResponse)
async def apply_subscription_event(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> SubscriptionEventResponse:
    _assert_access(request)
    try:
        event = parse_notification(payload, expected_bundle_id=get_settings().app_store_bundle_id)
    except SubscriptionPayloadError as exc:
        logger.warning("subscription_event_invalid", error=str(exc))
        raise HTTPException(status_code=422, detail={"code": "E_SUBSCRIPTION_PAYLOAD_INVALID"}) from exc

    async with SessionLocal.begin() as session:
        result = await SubscriptionEntitlementService.apply_verified_event(
            session,
            event=event,
            now_utc=datetime.now(timezone.utc),
        )

    return SubscriptionEventResponse(
        outcome=result.outcome.value,
        applied=result.decision is not None and result.decision.should_update,
        entitlement=_entitlement_as_view(result.entitlement) if result.entitlement is not None else None,
    )


@router.get("/{original_transaction_id}", response_model=EntitlementView)
async def get_subscription_entitlement(original_transaction_id: str, request: Request) -> EntitlementView:
    _assert_access(request)
    async with SessionLocal() as session:
        snapshot = await SubscriptionEntitlementService.get_entitlement(session, original_transaction_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail={"code": "E_ENTITLEMENT_NOT_FOUND"})
    return _entitlement_as_view(snapshot)
