import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.api.errors import install_error_handlers
from src.api.routes import audit_log, newsletter, preview, references, search_data, spelling
from src.api.routes.content import build_content_router
from src.app_shell.config import OpsConfigError, validate_ops_rules
from src.core.content_types import CONTENT_TYPES
from src.rules.loader import load_rules

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, check ops config and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info(
            "Rules loaded from %s, %d migrations applied", settings.rules_path, len(applied)
        )
    except (OpsConfigError, RuntimeError, ValueError, OSError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Quantum Knowledge Base API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    install_error_handlers(app)

    # --- Routers ---
    for spec in CONTENT_TYPES.values():
        app.include_router(
            build_content_router(spec.name), prefix=f"/api/{spec.segment}", tags=[spec.label]
        )
    app.include_router(references.router, prefix="/api/case-studies", tags=["References"])
    app.include_router(newsletter.router, prefix="/api/newsletter", tags=["Newsletter"])
    app.include_router(search_data.router, prefix="/api/search-data", tags=["Search"])
    app.include_router(preview.router, prefix="/api/preview", tags=["Preview"])
    app.include_router(audit_log.router, prefix="/api/audit-log", tags=["Audit Log"])
    app.include_router(spelling.router, prefix="/api/admin/spelling", tags=["Admin Spelling"])

    # CORS (Allow Frontend)
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "api"}

    return app


app = create_app()
