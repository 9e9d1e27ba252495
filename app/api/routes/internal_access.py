from __future__ import annotations

from fastapi import HTTPException, Request
from structlog.stdlib import BoundLogger

from app.services.internal_auth import internal_access_denial_reason


def assert_internal_access(request: Request, *, settings: object, logger: BoundLogger, event: str) -> None:
    reason, client_ip = internal_access_denial_reason(
        request,
        expected_token=getattr(settings, "internal_api_token", ""),
        allowlist=getattr(settings, "internal_api_allowlist", ""),
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )
    if reason is not None:
        logger.warning(event, reason=reason, client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
