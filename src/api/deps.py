import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.clock import SystemClock
from src.adapters.page_cache import PageCache, PageCacheRevalidator
from src.adapters.sqlite_db import (
    SQLiteAuditRepo,
    SQLiteContentStore,
    SQLiteCounterBackend,
    SQLiteNewsletterRepo,
)
from src.api.auth_utils import decode_access_token, is_draft_token
from src.app_shell.rate_limit import InMemoryCounterBackend, RateLimiter, resolve_limits
from src.components.audit import DeletionAuditService
from src.components.content import ContentComponent
from src.components.references import (
    CuratedReference,
    ReferenceSearchClient,
    load_curated_references,
)
from src.domain.entities import Actor
from src.rules.loader import load_rules
from src.rules.models import RateLimitRules, Rules


# --- Settings ---
class Settings:
    def __init__(
        self,
        data_dir: Path | None = None,
        rules_path: Path | None = None,
        secret_key: str | None = None,
        preview_secret: str | None = None,
        app_env: str | None = None,
        references_path: Path | None = None,
    ) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = data_dir or Path(os.environ.get("QKB_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "qkb.db")
        self.rules_path = rules_path or Path(
            os.environ.get("QKB_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.secret_key = secret_key or os.environ.get("QKB_SECRET_KEY", "dev-secret-unsafe")
        self.preview_secret = (
            preview_secret if preview_secret is not None else os.environ.get("PREVIEW_SECRET")
        )
        self.app_env = app_env or os.environ.get("APP_ENV", "production")
        self.references_path = references_path or Path(
            os.environ.get("QKB_REFERENCES_PATH", str(self.base_dir / "references.yaml"))
        )
        self.migrations_dir = Path(__file__).resolve().parents[2] / "migrations"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_content_store(settings: Settings = Depends(get_settings)) -> SQLiteContentStore:
    return SQLiteContentStore(settings.db_path)


def get_audit_repo(settings: Settings = Depends(get_settings)) -> SQLiteAuditRepo:
    return SQLiteAuditRepo(settings.db_path)


def get_newsletter_repo(settings: Settings = Depends(get_settings)) -> SQLiteNewsletterRepo:
    return SQLiteNewsletterRepo(settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Revalidation ---
_page_cache_instance: PageCache | None = None


def get_page_cache() -> PageCache:
    """Get page cache singleton."""
    global _page_cache_instance
    if _page_cache_instance is None:
        _page_cache_instance = PageCache()
    return _page_cache_instance


def get_revalidator(cache: PageCache = Depends(get_page_cache)) -> PageCacheRevalidator:
    return PageCacheRevalidator(cache)


# --- Component Services ---
def get_audit_service(
    repo: SQLiteAuditRepo = Depends(get_audit_repo),
    clock: SystemClock = Depends(get_clock),
) -> DeletionAuditService:
    """Get deletion audit service."""
    return DeletionAuditService(repo=repo, time_port=clock)


def get_content_component(
    store: SQLiteContentStore = Depends(get_content_store),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
    revalidator: PageCacheRevalidator = Depends(get_revalidator),
    audit: DeletionAuditService = Depends(get_audit_service),
) -> ContentComponent:
    """Get content component wired to the SQLite store."""
    return ContentComponent(
        store=store, clock=clock, rules=rules, revalidator=revalidator, audit=audit
    )


def get_reference_search(rules: Rules = Depends(get_rules)) -> ReferenceSearchClient:
    return ReferenceSearchClient(rules.references)


@lru_cache
def get_curated_references(
    settings: Settings = Depends(get_settings),
) -> dict[str, list[CuratedReference]]:
    return load_curated_references(settings.references_path)


# --- Rate limiting ---
def get_rate_limit_rules(rules: Rules = Depends(get_rules)) -> RateLimitRules:
    return resolve_limits(rules.rate_limits)


# Rate limiter singleton (counters must outlive a request)
_rate_limiter_instance: RateLimiter | None = None


def get_rate_limiter(
    settings: Settings = Depends(get_settings),
    limits: RateLimitRules = Depends(get_rate_limit_rules),
) -> RateLimiter:
    """Get rate limiter singleton, backed as configured."""
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        if limits.backend == "shared":
            _rate_limiter_instance = RateLimiter(
                backend=SQLiteCounterBackend(settings.db_path),
                fallback=InMemoryCounterBackend(),
            )
        else:
            _rate_limiter_instance = RateLimiter()
    return _rate_limiter_instance


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_actor(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Settings = Depends(get_settings),
) -> Actor:
    token = credentials.credentials if credentials else None

    # Cookie fallback (HttpOnly "Bearer <token>")
    cookie_token = request.cookies.get("access_token")
    if not token and cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token, settings.secret_key)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    email = payload.get("email")
    if not isinstance(subject, str) or not isinstance(email, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    roles = payload.get("roles") or []
    return Actor(
        id=subject,
        email=email,
        roles=[r for r in roles if r in ("admin", "user")],
    )


def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


def get_draft_mode(
    request: Request,
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> bool:
    """True when the request carries a valid draft mode cookie."""
    return is_draft_token(request.cookies.get(rules.preview.cookie_name), settings.secret_key)


def reset_singletons() -> None:
    """Drop process-wide singletons (tests, app restart)."""
    global _clock_instance, _page_cache_instance, _rate_limiter_instance
    _clock_instance = None
    _page_cache_instance = None
    _rate_limiter_instance = None
    get_settings.cache_clear()
    get_rules.cache_clear()
    get_curated_references.cache_clear()
