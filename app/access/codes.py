from __future__ import annotations

import re
import secrets
from datetime import datetime, timezone

from app.access.errors import CodeValidationError

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 12
MAX_CODES_PER_POOL = 10_000

_CODE_NORMALIZE_PATTERN = re.compile(r"[\s-]+")
_CODE_FORMAT_PATTERN = re.compile(r"^[A-Z0-9]{12}$")


def normalize_code(raw_code: str) -> str:
    normalized = raw_code.strip().upper()
    return _CODE_NORMALIZE_PATTERN.sub("", normalized)


def validate_code(raw_code: str | None) -> str:
    """Returns the normalized code or raises CodeValidationError before any lookup."""
    if raw_code is None:
        raise CodeValidationError("code is required", field="code")
    normalized = normalize_code(raw_code)
    if _CODE_FORMAT_PATTERN.fullmatch(normalized) is None:
        raise CodeValidationError("code must be 12 letters or digits", field="code")
    return normalized


def generate_codes(
    *,
    count: int,
    token_length: int = CODE_LENGTH,
    existing_codes: set[str] | None = None,
) -> list[str]:
    if count <= 0:
        raise ValueError("count must be positive")
    if token_length <= 0:
        raise ValueError("token_length must be positive")

    existing = existing_codes if existing_codes is not None else set()
    generated: list[str] = []
    attempts = 0
    max_attempts = max(100, count * 50)

    while len(generated) < count:
        attempts += 1
        if attempts > max_attempts:
            raise RuntimeError("unable to generate unique access codes")

        token = "".join(secrets.choice(CODE_ALPHABET) for _ in range(token_length))
        if token in existing:
            continue

        existing.add(token)
        generated.append(token)

    return generated


def parse_utc_datetime(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise CodeValidationError(
            "expiration must be an ISO-8601 datetime", field="expiration"
        ) from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
