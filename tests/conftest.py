from collections.abc import Iterator
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.auth_utils import create_access_token
from src.api.deps import Settings, get_settings, reset_singletons
from src.api.main import create_app
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TEST_SECRET = "test-secret-key"
PREVIEW_SECRET = "preview-secret"


@pytest.fixture
def rules() -> Rules:
    """Real rules from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Temporary SQLite database with every migration applied."""
    path = str(tmp_path / "qkb.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def settings(tmp_path: Path, db_path: str) -> Settings:
    return Settings(
        data_dir=tmp_path,
        rules_path=PROJECT_ROOT / "rules.yaml",
        secret_key=TEST_SECRET,
        preview_secret=PREVIEW_SECRET,
        app_env="production",
        references_path=PROJECT_ROOT / "references.yaml",
    )


@pytest.fixture
def app(settings: Settings) -> Iterator[FastAPI]:
    """Full application wired to the temporary database."""
    reset_singletons()
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    yield app
    app.dependency_overrides.clear()
    reset_singletons()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def make_token(email: str, roles: list[str], subject: str | None = None) -> str:
    return create_access_token(
        {"sub": subject or email, "email": email, "roles": roles},
        expires_delta=timedelta(hours=1),
        secret_key=TEST_SECRET,
    )


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token('admin@example.com', ['admin'])}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token('reader@example.com', ['user'])}"}
