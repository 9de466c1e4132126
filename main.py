"""
Auth token service: application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.error_handling import register_exception_handlers
from api.middleware import register_middleware
from auth.routes import router as auth_router
from auth.service import TokenService
from auth.store import CredentialStore, SqlCredentialStore
from config.settings import Settings, config
from database import session as db

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("aiosqlite", "sqlalchemy.engine", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_token_service(settings: Settings, store: CredentialStore) -> TokenService:
    return TokenService(
        store,
        settings.jwt_secret,
        expiry_seconds=settings.jwt_expiry_seconds,
        algorithm=settings.jwt_algorithm,
        refresh_from_store=settings.jwt_refresh_reads_store,
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
) -> FastAPI:
    """Build the app.

    When ``store`` is given it is used as-is and no database connection is
    opened; otherwise the SQL store is connected during startup.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        connected = False
        if getattr(app.state, "token_service", None) is None:
            session_factory = await db.connect(settings.database_url)
            connected = True
            app.state.token_service = build_token_service(
                settings, SqlCredentialStore(session_factory)
            )
        logger.info("Application ready to accept requests.")
        try:
            yield
        finally:
            if connected:
                await db.disconnect()

    app = FastAPI(
        title="Auth Token Service",
        version="1.0.0",
        description="Credential login and signed token refresh.",
        lifespan=lifespan,
    )
    app.state.token_service = (
        build_token_service(settings, store) if store is not None else None
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/api/auth")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
