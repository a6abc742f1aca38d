"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - build_engine(): Creates the async engine from Settings
  - build_sessionmaker(): Factory for AsyncSession instances
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request
  - storage_call(): Bounds a unit of store work by the configured timeout

Engine and session factory are built once in create_app() and stored on
app.state. get_db() reads them from the request, so tests and the server
never share a global engine.

Session lifecycle:
  Each API request gets its own session via get_db(). The session commits
  on success and rolls back on exception. If the request task is cancelled
  (client disconnect), closing the session rolls back whatever transaction
  was still open, so a half-applied write is never committed.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ledger_api.config import Settings
from ledger_api.exceptions import StorageUnavailableError


logger = logging.getLogger(__name__)

# Key under which the session factory stores the per-call timeout.
STORAGE_TIMEOUT_KEY = "storage_timeout"


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine.

    echo=True in debug mode logs all SQL statements. Only bound parameters
    reach the log, and the only credential column ever written is the hash.
    """
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        # SQLite creates the file but not its directory
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
    )


def build_sessionmaker(
    engine: AsyncEngine, settings: Settings
) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the engine.

    expire_on_commit=False prevents lazy-load errors after commit: the
    ledger commits inside the service layer and the router still reads the
    returned Account afterwards.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        info={STORAGE_TIMEOUT_KEY: settings.DB_TIMEOUT_SECONDS},
    )


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db(request: Request):
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    session_factory = request.app.state.sessionmaker
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def storage_call(db: AsyncSession):
    """
    Run a unit of store work under the configured timeout.

    Timeouts and driver-level connectivity failures surface as
    StorageUnavailableError. The original exception is logged with its
    context and chained, but none of it is sent to the client.
    """
    timeout = db.info.get(STORAGE_TIMEOUT_KEY)
    try:
        async with asyncio.timeout(timeout):
            yield
    except TimeoutError as exc:
        logger.error("store call exceeded %ss", timeout)
        raise StorageUnavailableError() from exc
    except (OperationalError, InterfaceError) as exc:
        logger.error("store call failed: %s", exc.__class__.__name__, exc_info=exc)
        raise StorageUnavailableError() from exc
