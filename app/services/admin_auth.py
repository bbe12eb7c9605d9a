from __future__ import annotations

import hashlib
import ipaddress
import secrets
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Request

ADMIN_TOKEN_HEADER = "X-Internal-Token"
ADMIN_SESSION_COOKIE = "edu_access_admin_session"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@dataclass(frozen=True, slots=True)
class AdminAuthDecision:
    allowed: bool
    reason: str
    client_ip: str | None


def build_admin_session_value(*, token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _matches(expected: str, received: str | None) -> bool:
    if not expected or not received:
        return False
    return secrets.compare_digest(expected, received)


def has_valid_admin_credentials(request: Request, *, expected_token: str) -> bool:
    if _matches(expected_token, request.headers.get(ADMIN_TOKEN_HEADER)):
        return True
    if not expected_token:
        return False
    return _matches(
        build_admin_session_value(token=expected_token),
        request.cookies.get(ADMIN_SESSION_COOKIE),
    )


@lru_cache(maxsize=32)
def parse_networks(raw: str) -> tuple[IPNetwork, ...]:
    networks: list[IPNetwork] = []
    for chunk in raw.split(","):
        entry = chunk.strip()
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def _normalize_ip(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def is_ip_in_networks(*, client_ip: str | None, networks: str) -> bool:
    normalized = _normalize_ip(client_ip)
    if normalized is None:
        return False
    address = ipaddress.ip_address(normalized)
    return any(address in network for network in parse_networks(networks))


def resolve_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    """Peer address, or the first X-Forwarded-For hop when the peer is a trusted proxy."""
    peer_ip = _normalize_ip(request.client.host if request.client is not None else None)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if not forwarded_for or not is_ip_in_networks(client_ip=peer_ip, networks=trusted_proxies):
        return peer_ip
    return _normalize_ip(forwarded_for.split(",", maxsplit=1)[0])


def evaluate_admin_request(
    request: Request,
    *,
    expected_token: str,
    allowlist: str,
    trusted_proxies: str = "",
) -> AdminAuthDecision:
    client_ip = resolve_client_ip(request, trusted_proxies=trusted_proxies)
    if not is_ip_in_networks(client_ip=client_ip, networks=allowlist):
        return AdminAuthDecision(allowed=False, reason="ip_not_allowed", client_ip=client_ip)
    if not has_valid_admin_credentials(request, expected_token=expected_token):
        return AdminAuthDecision(allowed=False, reason="invalid_credentials", client_ip=client_ip)
    return AdminAuthDecision(allowed=True, reason="ok", client_ip=client_ip)
