"""Integration tests for the newsletter API routes."""

from src.adapters.sqlite_db import SQLiteNewsletterRepo


def subscribe(client, email, **headers):
    return client.post("/api/newsletter", json={"email": email}, headers=headers)


def test_subscribe_then_duplicate(client):
    first = subscribe(client, "Reader@Example.com ")
    assert first.status_code == 200
    assert first.json()["email"] == "reader@example.com"
    assert first.json()["alreadySubscribed"] is False
    assert first.headers["X-RateLimit-Limit"] == "5"
    assert first.headers["X-RateLimit-Remaining"] == "4"

    again = subscribe(client, "reader@example.com")
    assert again.json()["alreadySubscribed"] is True


def test_invalid_email(client):
    response = subscribe(client, "not-an-email")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid email address"


def test_sixth_request_is_rate_limited(client):
    for n in range(5):
        assert subscribe(client, f"user{n}@example.com").status_code == 200

    response = subscribe(client, "user5@example.com")

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0
    assert response.headers["X-RateLimit-Limit"] == "5"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.json()["error"] == "Too many requests. Please try again later."


def test_limit_is_per_client(client):
    for n in range(5):
        subscribe(client, f"user{n}@example.com", **{"X-Forwarded-For": "1.1.1.1"})

    other = subscribe(client, "other@example.com", **{"X-Forwarded-For": "2.2.2.2"})

    assert other.status_code == 200


def test_status_and_unsubscribe_by_token(client, settings):
    subscribe(client, "reader@example.com")
    token = SQLiteNewsletterRepo(settings.db_path).get_by_email(
        "reader@example.com"
    ).unsubscribe_token

    status = client.get("/api/newsletter", params={"token": token}).json()
    assert status == {
        "email": "reader@example.com",
        "status": "active",
        "alreadyUnsubscribed": False,
    }

    assert client.delete("/api/newsletter", params={"token": token}).status_code == 200
    repeat = client.get("/api/newsletter", params={"token": token}).json()
    assert repeat["alreadyUnsubscribed"] is True


def test_unknown_token(client):
    assert client.delete("/api/newsletter", params={"token": "nope"}).status_code == 404
    assert client.get("/api/newsletter").status_code == 400


def test_signed_in_subscription(client, user_headers):
    before = client.get("/api/newsletter/subscription", headers=user_headers).json()
    assert before["status"] == "not_subscribed"

    client.post(
        "/api/newsletter/subscription", json={"subscribe": True}, headers=user_headers
    )
    after = client.get("/api/newsletter/subscription", headers=user_headers).json()
    assert after["isSubscribed"] is True

    client.post(
        "/api/newsletter/subscription", json={"subscribe": False}, headers=user_headers
    )
    final = client.get("/api/newsletter/subscription", headers=user_headers).json()
    assert final["status"] == "unsubscribed"


def test_subscription_requires_sign_in(client):
    assert client.get("/api/newsletter/subscription").status_code == 401
