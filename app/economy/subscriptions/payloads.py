from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.economy.subscriptions.errors import SubscriptionPayloadError
from app.economy.subscriptions.types import VerifiedEvent, VerifiedRenewalInfo, VerifiedTransaction

AUTO_RENEW_ON = 1


def _epoch_ms_to_datetime(value: Any) -> Any:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise ValueError("timestamp must be epoch milliseconds")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return value


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    # Provider dates without an offset are UTC.
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _ProviderModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TransactionPayload(_ProviderModel):
    original_transaction_id: str = Field(alias="originalTransactionId", min_length=1, max_length=64)
    transaction_id: str | None = Field(default=None, alias="transactionId", max_length=64)
    product_id: str = Field(alias="productId", min_length=1, max_length=128)
    bundle_id: str | None = Field(default=None, alias="bundleId")
    expires_date: datetime | None = Field(default=None, alias="expiresDate")
    revocation_date: datetime | None = Field(default=None, alias="revocationDate")

    @field_validator("expires_date", "revocation_date", mode="before")
    @classmethod
    def _parse_epoch_ms(cls, value: Any) -> Any:
        return _epoch_ms_to_datetime(value)

    @field_validator("expires_date", "revocation_date")
    @classmethod
    def _normalise_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class RenewalInfoPayload(_ProviderModel):
    auto_renew_status: int | None = Field(default=None, alias="autoRenewStatus")
    grace_period_expires_date: datetime | None = Field(default=None, alias="gracePeriodExpiresDate")
    is_in_billing_retry_period: bool = Field(default=False, alias="isInBillingRetryPeriod")

    @field_validator("grace_period_expires_date", mode="before")
    @classmethod
    def _parse_epoch_ms(cls, value: Any) -> Any:
        return _epoch_ms_to_datetime(value)

    @field_validator("grace_period_expires_date")
    @classmethod
    def _normalise_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class NotificationPayload(_ProviderModel):
    notification_type: str = Field(alias="notificationType", min_length=1, max_length=64)
    subtype: str | None = Field(default=None, max_length=64)
    notification_uuid: str | None = Field(default=None, alias="notificationUUID", max_length=64)
    user_id: str | None = Field(default=None, alias="userId", max_length=64)
    transaction_info: TransactionPayload = Field(alias="transactionInfo")
    renewal_info: RenewalInfoPayload | None = Field(default=None, alias="renewalInfo")


def _as_verified_event(payload: NotificationPayload) -> VerifiedEvent:
    transaction = payload.transaction_info
    renewal = payload.renewal_info
    return VerifiedEvent(
        notification_type=payload.notification_type,
        subtype=payload.subtype,
        notification_uuid=payload.notification_uuid,
        user_id=payload.user_id,
        transaction=VerifiedTransaction(
            original_transaction_id=transaction.original_transaction_id,
            transaction_id=transaction.transaction_id,
            product_id=transaction.product_id,
            expires_date=transaction.expires_date,
            revocation_date=transaction.revocation_date,
        ),
        renewal_info=(
            VerifiedRenewalInfo(
                auto_renew_enabled=(
                    None if renewal.auto_renew_status is None else renewal.auto_renew_status == AUTO_RENEW_ON
                ),
                grace_period_expires_date=renewal.grace_period_expires_date,
                is_in_billing_retry_period=renewal.is_in_billing_retry_period,
            )
            if renewal is not None
            else None
        ),
    )


def parse_notification(raw: dict[str, Any], *, expected_bundle_id: str | None = None) -> VerifiedEvent:
    """Turns an already verified, decoded provider notification into a ``VerifiedEvent``."""
    try:
        payload = NotificationPayload.model_validate(raw)
    except ValidationError as exc:
        raise SubscriptionPayloadError(f"invalid subscription notification: {exc.error_count()} errors") from exc

    bundle_id = payload.transaction_info.bundle_id
    if expected_bundle_id and bundle_id is not None and bundle_id != expected_bundle_id:
        raise SubscriptionPayloadError(f"unexpected bundle id: {bundle_id}")

    return _as_verified_event(payload)
