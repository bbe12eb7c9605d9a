from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

STUDENT_ID_CLAIMS = ("userId", "sub")


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_student_id(token: str | None, *, secret_key: str, algorithm: str) -> int | None:
    if not token or not secret_key:
        return None
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        return None

    for claim in STUDENT_ID_CLAIMS:
        raw_value = payload.get(claim)
        if raw_value is None:
            continue
        try:
            student_id = int(str(raw_value))
        except ValueError:
            return None
        return student_id if student_id > 0 else None
    return None


def create_student_token(
    *,
    student_id: int,
    secret_key: str,
    algorithm: str = "HS256",
    expires_in: timedelta = timedelta(days=30),
    now_utc: datetime | None = None,
) -> str:
    now_utc = now_utc or datetime.now(timezone.utc)
    payload = {
        "userId": str(student_id),
        "iat": int(now_utc.timestamp()),
        "exp": int((now_utc + expires_in).timestamp()),
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)
