import os
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import jwt

SECRET_KEY = os.environ.get("QKB_SECRET_KEY", "dev-secret-unsafe")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
    secret_key: str | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode in the token
        expires_delta: Optional custom expiration delta
        now_utc: Current UTC time (for testing/determinism). Defaults to datetime.now(UTC).
        secret_key: Signing key. Defaults to QKB_SECRET_KEY.
    """
    to_encode = data.copy()
    current_time = now_utc if now_utc is not None else datetime.now(UTC)

    if expires_delta:
        expire = current_time + expires_delta
    else:
        expire = current_time + timedelta(minutes=15)

    to_encode.update({"exp": expire})
    encoded_jwt: str = jwt.encode(to_encode, secret_key or SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, secret_key: str | None = None) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, secret_key or SECRET_KEY, algorithms=[ALGORITHM])
        return cast(dict[str, Any], payload)
    except jwt.JWTError:
        return None


# --- Draft mode cookie ---

DRAFT_MODE_PURPOSE = "draft_mode"


def create_draft_token(
    max_age_seconds: int, secret_key: str | None = None, now_utc: datetime | None = None
) -> str:
    """Signed value for the draft mode cookie."""
    return create_access_token(
        {"purpose": DRAFT_MODE_PURPOSE},
        expires_delta=timedelta(seconds=max_age_seconds),
        now_utc=now_utc,
        secret_key=secret_key,
    )


def is_draft_token(token: str | None, secret_key: str | None = None) -> bool:
    if not token:
        return False
    payload = decode_access_token(token, secret_key)
    return payload is not None and payload.get("purpose") == DRAFT_MODE_PURPOSE
