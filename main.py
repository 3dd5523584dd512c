"""
Kodbank API: application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.middleware import register_middleware
from api.routes import router as user_router
from auth.jwt import TokenIssuer
from auth.password import PasswordHasher
from auth.routes import router as auth_router
from auth.service import AuthPolicy
from auth.sessions import SessionRegistry
from config.settings import Settings
from database.session import build_engine, build_session_factory, create_tables

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    for _noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    engine = build_engine(settings)
    if settings.auto_create_tables:
        logger.info("Ensuring database tables exist…")
        await create_tables(engine)

    session_factory = build_session_factory(engine)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.session_registry = SessionRegistry(session_factory)
    app.state.password_hasher = PasswordHasher(settings.bcrypt_rounds)

    logger.info("Application ready to accept requests.")
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed.")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Settings are read from the environment when not given; a missing
    ``JWT_SECRET`` fails here, before the server starts listening.
    """
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="Kodbank API",
        version="1.0.0",
        description="Registration, login and balance lookup for Kodbank customers.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_issuer = TokenIssuer(settings.jwt_secret, settings.jwt_expiry_seconds)
    app.state.auth_policy = AuthPolicy.from_settings(settings)

    register_middleware(app, settings)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/auth")
    app.include_router(user_router, prefix="/user")

    @app.get("/health", tags=["monitoring"])
    async def health_check():
        return {"status": "ok", "service": "kodbank"}

    return app


if __name__ == "__main__":
    _settings = Settings()
    uvicorn.run(
        create_app(_settings),
        host=_settings.host,
        port=_settings.port,
        log_level="debug" if _settings.debug else "info",
    )
