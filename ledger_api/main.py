"""
FastAPI application factory and entry point.

create_app() builds and configures the FastAPI application:
  1. Settings — one frozen object, built once and passed down explicitly
  2. Engine, session factory and token service — stored on app.state
  3. Lifespan manager — creates tables on startup, disposes the engine on shutdown
  4. CORS middleware — allows frontend origins to make cross-origin requests
  5. Exception handlers — maps domain errors to HTTP responses
  6. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn ledger_api.main:create_app --factory --reload

The --factory flag makes uvicorn call create_app() itself, so Settings are
read from the environment once, at process start.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledger_api.config import Settings
from ledger_api.database import Base, build_engine, build_sessionmaker
from ledger_api.exceptions import register_exception_handlers
from ledger_api.logging_config import setup_logging
from ledger_api.routers import accounts, auth, transfers
from ledger_api.security import TokenService

import ledger_api.models  # noqa: F401  (registers tables on Base.metadata)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates the accounts table if it doesn't exist.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # --- Shutdown ---
    await app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration to use. When omitted, Settings() reads the
                  environment and .env file.
    """
    if settings is None:
        settings = Settings()

    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Ledger REST API with token-guarded accounts and atomic transfers",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine, settings)
    app.state.token_service = TokenService(settings)

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(auth.router, tags=["Auth"])
    app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transfers.router, prefix="/accounts", tags=["Transfers"])

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness probe for load balancers and orchestrators."""
        return {"status": "ok", "version": settings.APP_VERSION}

    return app
