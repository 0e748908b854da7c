from datetime import UTC, datetime, timedelta

from src.api.auth_utils import (
    create_access_token,
    create_draft_token,
    decode_access_token,
    is_draft_token,
)


def test_round_trip():
    token = create_access_token({"sub": "u1", "email": "a@example.com"}, secret_key="k")
    payload = decode_access_token(token, secret_key="k")
    assert payload["sub"] == "u1"
    assert payload["email"] == "a@example.com"


def test_wrong_key_is_rejected():
    token = create_access_token({"sub": "u1"}, secret_key="k")
    assert decode_access_token(token, secret_key="other") is None


def test_expired_token_is_rejected():
    past = datetime.now(UTC) - timedelta(hours=2)
    token = create_access_token(
        {"sub": "u1"}, expires_delta=timedelta(minutes=5), now_utc=past, secret_key="k"
    )
    assert decode_access_token(token, secret_key="k") is None


def test_draft_token():
    token = create_draft_token(3600, secret_key="k")
    assert is_draft_token(token, secret_key="k")
    assert not is_draft_token(token, secret_key="other")
    assert not is_draft_token(None, secret_key="k")


def test_access_token_is_not_a_draft_token():
    token = create_access_token({"sub": "u1"}, secret_key="k")
    assert not is_draft_token(token, secret_key="k")
