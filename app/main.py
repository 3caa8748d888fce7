"""
FastAPI application factory. No business logic; only wiring and middleware.

Run with: uvicorn app.main:create_app --factory
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory
from app.core.security import PasswordHasher, TokenAuthority

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the app. Settings are read once here; a missing DATABASE_URL or
    JWT_SECRET fails now rather than on the first request.
    """
    if settings is None:
        load_dotenv()
        settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Accounts API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.token_authority = TokenAuthority.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Accounts API"}

    logger.info("Application configured (env=%s)", settings.APP_ENV)
    return app
