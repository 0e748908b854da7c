"""
Redirect path sanitizing.

Only same-site relative paths may be used as redirect targets (preview
redirects, post-login returns). Anything else collapses to "/".
"""

from __future__ import annotations

from urllib.parse import unquote

DANGEROUS_PROTOCOLS = ("javascript:", "data:", "vbscript:", "file:")


def is_valid_redirect_path(path: str | None) -> bool:
    """Check if path is a safe internal redirect target."""
    if not path:
        return False

    # Decode once so %2F%2F and friends are judged like their plain forms
    decoded = unquote(path).strip()

    if not decoded.startswith("/"):
        return False

    # Protocol-relative URL
    if decoded.startswith("//"):
        return False

    # Browsers treat backslashes as slashes
    if "\\" in decoded:
        return False

    if "://" in decoded:
        return False

    lower = decoded.lower()
    if any(proto in lower for proto in DANGEROUS_PROTOCOLS):
        return False

    return True


def get_safe_redirect_path(path: str | None) -> str:
    """Return path unchanged when it is a safe internal path, else "/"."""
    return path if path and is_valid_redirect_path(path) else "/"
