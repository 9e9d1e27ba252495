from __future__ import annotations

from types import SimpleNamespace

from app.services.internal_auth import (
    extract_client_ip,
    internal_access_denial_reason,
    is_client_ip_allowed,
    is_internal_request_authenticated,
    is_valid_internal_token,
)


def _request(*, host: str, headers: dict[str, str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(headers=headers or {}, client=SimpleNamespace(host=host))


def test_is_valid_internal_token_requires_exact_match() -> None:
    assert is_valid_internal_token(expected_token="secret", received_token="secret") is True
    assert is_valid_internal_token(expected_token="secret", received_token="wrong") is False
    assert is_valid_internal_token(expected_token="secret", received_token=None) is False
    assert is_valid_internal_token(expected_token="", received_token="") is False


def test_is_internal_request_authenticated_reads_token_header() -> None:
    assert is_internal_request_authenticated(
        _request(host="127.0.0.1", headers={"X-Internal-Token": "secret"}),
        expected_token="secret",
    )
    assert not is_internal_request_authenticated(_request(host="127.0.0.1"), expected_token="secret")


def test_is_client_ip_allowed_supports_exact_ip_and_cidr() -> None:
    allowlist = "127.0.0.1,10.0.0.0/8, not-a-network"
    assert is_client_ip_allowed(client_ip="127.0.0.1", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="10.12.33.1", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="192.168.1.5", allowlist=allowlist) is False
    assert is_client_ip_allowed(client_ip=None, allowlist=allowlist) is False


def test_extract_client_ip_uses_forwarded_header_only_for_trusted_proxy() -> None:
    request = _request(host="127.0.0.1", headers={"X-Forwarded-For": "10.1.1.8, 127.0.0.1"})
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") == "10.1.1.8"


def test_extract_client_ip_ignores_forwarded_header_for_untrusted_proxy() -> None:
    request = _request(host="198.51.100.10", headers={"X-Forwarded-For": "10.1.1.8, 127.0.0.1"})
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") == "198.51.100.10"


def test_extract_client_ip_rejects_invalid_forwarded_header_for_trusted_proxy() -> None:
    request = _request(host="127.0.0.1", headers={"X-Forwarded-For": "not-an-ip, 127.0.0.1"})
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") is None


def test_extract_client_ip_supports_ipv6_forwarded_header() -> None:
    request = _request(host="127.0.0.1", headers={"X-Forwarded-For": "2001:db8::10, 127.0.0.1"})
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") == "2001:db8::10"


def test_denial_reason_checks_ip_before_token() -> None:
    outside = _request(host="203.0.113.9", headers={"X-Internal-Token": "secret"})
    inside_without_token = _request(host="127.0.0.1")
    inside_with_token = _request(host="127.0.0.1", headers={"X-Internal-Token": "secret"})

    assert internal_access_denial_reason(outside, expected_token="secret", allowlist="127.0.0.1/32") == (
        "ip_not_allowed",
        "203.0.113.9",
    )
    assert internal_access_denial_reason(
        inside_without_token,
        expected_token="secret",
        allowlist="127.0.0.1/32",
    ) == ("invalid_credentials", "127.0.0.1")
    assert internal_access_denial_reason(
        inside_with_token,
        expected_token="secret",
        allowlist="127.0.0.1/32",
    ) == (None, "127.0.0.1")
