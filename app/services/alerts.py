from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)
SEVERITY_COLOR = {
    "critical": "#B42318",
    "error": "#F04438",
    "warning": "#F79009",
    "info": "#1570EF",
}


@dataclass(frozen=True)
class AlertRoute:
    channels: tuple[str, ...]
    severity: str


@dataclass(frozen=True)
class AlertTarget:
    channel: str
    url: str


DEFAULT_ALERT_ROUTE = AlertRoute(channels=("generic",), severity="warning")
EVENT_ALERT_ROUTES = {
    "redemption_reconciliation_diff_detected": AlertRoute(
        channels=("slack", "generic"),
        severity="critical",
    ),
    "redemption_reconciliation_failed": AlertRoute(
        channels=("slack", "generic"),
        severity="error",
    ),
}


def _setting_str(settings: object, attr: str) -> str:
    value = getattr(settings, attr, "")
    return value.strip() if isinstance(value, str) else ""


def _resolve_targets(*, route: AlertRoute, settings: object) -> list[AlertTarget]:
    channel_to_url = {
        "generic": _setting_str(settings, "ops_alert_webhook_url"),
        "slack": _setting_str(settings, "ops_alert_slack_webhook_url"),
    }
    return [
        AlertTarget(channel=channel, url=channel_to_url[channel])
        for channel in route.channels
        if channel_to_url.get(channel)
    ]


def _build_channel_payload(
    *,
    channel: str,
    event: str,
    payload: dict[str, object],
    sent_at: datetime,
    route: AlertRoute,
    app_env: str,
) -> dict[str, Any]:
    if channel == "generic":
        return {
            "event": event,
            "payload": payload,
            "sent_at": sent_at.isoformat(),
            "severity": route.severity,
            "environment": app_env,
        }
    if channel == "slack":
        return {
            "text": f"[{route.severity.upper()}] {event}",
            "attachments": [
                {
                    "color": SEVERITY_COLOR.get(route.severity, SEVERITY_COLOR["warning"]),
                    "fields": [
                        {"title": "Environment", "value": app_env, "short": True},
                        {"title": "Sent At", "value": sent_at.isoformat(), "short": True},
                        {
                            "title": "Payload",
                            "value": json.dumps(payload, sort_keys=True, default=str),
                            "short": False,
                        },
                    ],
                }
            ],
        }
    raise ValueError(f"Unsupported alert channel: {channel}")


async def send_ops_alert(*, event: str, payload: dict[str, object]) -> bool:
    settings = get_settings()
    route = EVENT_ALERT_ROUTES.get(event, DEFAULT_ALERT_ROUTE)
    targets = _resolve_targets(route=route, settings=settings)
    if not targets:
        return False

    sent_at = datetime.now(timezone.utc)
    app_env = _setting_str(settings, "app_env") or "dev"

    delivered_to: list[str] = []
    async with httpx.AsyncClient(timeout=5.0) as client:
        for target in targets:
            body = _build_channel_payload(
                channel=target.channel,
                event=event,
                payload=payload,
                sent_at=sent_at,
                route=route,
                app_env=app_env,
            )
            try:
                response = await client.post(target.url, json=body)
                response.raise_for_status()
            except Exception:
                logger.exception("ops_alert_delivery_failed", alert_event=event, provider=target.channel)
                continue
            delivered_to.append(target.channel)

    if not delivered_to:
        logger.error("ops_alert_delivery_exhausted", alert_event=event, severity=route.severity)
        return False

    logger.info(
        "ops_alert_delivered",
        alert_event=event,
        severity=route.severity,
        delivered_to=delivered_to,
    )
    return True
