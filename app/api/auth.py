from __future__ import annotations

import structlog
from fastapi import Request

from app.api.errors import http_error
from app.core.config import get_settings
from app.services.admin_auth import evaluate_admin_request
from app.services.student_auth import decode_student_id, extract_bearer_token

logger = structlog.get_logger(__name__)

ADMIN_ACTOR_HEADER = "X-Admin-Actor"
DEFAULT_ADMIN_ACTOR = "internal"


def get_current_student_id(request: Request) -> int:
    settings = get_settings()
    student_id = decode_student_id(
        extract_bearer_token(request.headers.get("Authorization")),
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    if student_id is None:
        raise http_error(request, 401, "E_UNAUTHORIZED")
    return student_id


def assert_admin_access(request: Request) -> str:
    settings = get_settings()
    decision = evaluate_admin_request(
        request,
        expected_token=settings.internal_api_token,
        allowlist=settings.internal_api_allowlist,
        trusted_proxies=settings.internal_api_trusted_proxies,
    )
    if not decision.allowed:
        logger.warning("admin_auth_failed", reason=decision.reason, client_ip=decision.client_ip)
        raise http_error(request, 403, "E_FORBIDDEN")

    return request.headers.get(ADMIN_ACTOR_HEADER, "").strip()[:64] or DEFAULT_ADMIN_ACTOR
