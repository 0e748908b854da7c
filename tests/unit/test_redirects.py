import pytest

from src.core.redirects import get_safe_redirect_path, is_valid_redirect_path


@pytest.mark.parametrize(
    "path",
    [
        "/dashboard",
        "/admin/settings",
        "/case-study/quantum-routing",
        "/search?q=quantum",
        "/docs#section",
    ],
)
def test_safe_paths_pass_through(path):
    assert is_valid_redirect_path(path)
    assert get_safe_redirect_path(path) == path


@pytest.mark.parametrize(
    "path",
    [
        "https://evil.com",
        "http://malicious.com/steal",
        "//evil.com",
        "//evil.com/phishing",
        "javascript:alert(1)",
        "data:text/html,<script>alert(1)</script>",
        "vbscript:msgbox(1)",
        "file:///etc/passwd",
        "%2F%2Fevil.com",
        "/\\evil.com",
        "/redirect?to=javascript:alert(1)",
        "dashboard",
    ],
)
def test_dangerous_paths_collapse_to_root(path):
    assert not is_valid_redirect_path(path)
    assert get_safe_redirect_path(path) == "/"


@pytest.mark.parametrize("path", [None, ""])
def test_missing_path(path):
    assert not is_valid_redirect_path(path)
    assert get_safe_redirect_path(path) == "/"
