"""Integration tests for draft mode (preview) routes."""

from src.api.auth_utils import create_draft_token


def test_wrong_secret(client):
    response = client.get(
        "/api/preview", params={"secret": "nope", "slug": "x"}, follow_redirects=False
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_missing_secret_configuration(client, settings):
    settings.preview_secret = None
    response = client.get("/api/preview", params={"secret": "x"}, follow_redirects=False)
    assert response.status_code == 500


def test_enable_sets_cookie_and_redirects(client, settings):
    response = client.get(
        "/api/preview",
        params={"secret": settings.preview_secret, "slug": "grid-routing", "type": "case-study"},
        follow_redirects=False,
    )

    assert response.status_code == 307
    assert response.headers["location"] == "/case-study/grid-routing"
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("draft_mode=")
    assert "HttpOnly" in cookie
    assert "Secure" in cookie
    assert "samesite=none" in cookie.lower()


def test_unknown_type_redirects_home(client, settings):
    response = client.get(
        "/api/preview",
        params={"secret": settings.preview_secret, "slug": "x", "type": "widget"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/"


def test_draft_mode_shows_unpublished(client, settings, admin_headers):
    client.post(
        "/api/case-studies", json={"slug": "draft", "title": "Draft"}, headers=admin_headers
    )
    assert client.get("/api/case-studies", params={"slug": "draft"}).status_code == 404

    client.cookies.set("draft_mode", create_draft_token(3600, settings.secret_key))

    response = client.get("/api/case-studies", params={"slug": "draft"})
    assert response.status_code == 200
    assert response.json()["title"] == "Draft"


def test_disable(client):
    response = client.delete("/api/preview")
    assert response.status_code == 200
    assert response.text == "Preview mode disabled"
    assert "draft_mode=" in response.headers["set-cookie"]
