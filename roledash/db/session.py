from __future__ import annotations

import asyncio
import logging
import os
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from . import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_Session: async_sessionmaker[AsyncSession] | None = None
_init_lock = asyncio.Lock()
_DEBUG_SQL = os.getenv("ROLEDASH_DEBUG_SQLALCHEMY", "").lower() in {"1", "true", "yes"}

# async driver -> driver Alembic runs migrations with
_SYNC_DRIVERS = {"sqlite+aiosqlite": "sqlite", "mysql+aiomysql": "mysql+pymysql"}
_MIGRATIONS = Path(__file__).resolve().parent / "migrations"


def mask_url(url: str) -> str:
    return re.sub(r":[^:@/]+@", ":***@", url)


def _sync_url(url: str) -> str:
    sa_url = make_url(url)
    driver = _SYNC_DRIVERS.get(sa_url.drivername, sa_url.drivername)
    return sa_url.set(drivername=driver).render_as_string(hide_password=False)


def _migrate(url: str) -> None:
    config = Config()
    config.set_main_option("script_location", str(_MIGRATIONS))
    config.set_main_option("sqlalchemy.url", _sync_url(url).replace("%", "%%"))
    command.upgrade(config, "head")


async def init_db(url: str) -> AsyncEngine:
    """Open the reaction-role database and bring its tables up to date.

    SQLite files get ``create_all``; MySQL goes through the Alembic
    revisions in ``migrations/``.
    """

    global _engine, _Session
    async with _init_lock:
        if _engine is not None:
            return _engine

        sa_url = make_url(url)
        logger.debug("init_db url=%s", mask_url(url))
        engine = create_async_engine(url, echo=_DEBUG_SQL, future=True)
        if sa_url.get_backend_name() == "sqlite":
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        else:
            try:
                await asyncio.to_thread(_migrate, url)
            except OperationalError as exc:  # pragma: no cover - requires real DB
                logger.error(
                    "Migration failed for %s:%s as %s: %s",
                    sa_url.host,
                    sa_url.port,
                    sa_url.username,
                    exc,
                )
                await engine.dispose()
                raise

        _engine = engine
        _Session = async_sessionmaker(engine, expire_on_commit=False)
        return engine


async def dispose_db() -> None:
    global _engine, _Session
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _Session = None


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    if _Session is None:
        raise RuntimeError("Database not initialised, call init_db first")
    async with _Session() as session:
        yield session
