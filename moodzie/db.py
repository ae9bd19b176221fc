from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import event, select
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import ConnectionPoolEntry

from moodzie.app.core.config import normalize_database_url
from moodzie.app.db.models import Base, SettingEntry

PACKAGE_DIR = Path(__file__).resolve().parent
SCHEMA_VERSION_KEY = "schema_version"

logger = logging.getLogger("moodzie.db")


def _sqlite_foreign_keys(dbapi_connection: DBAPIConnection, _: ConnectionPoolEntry) -> None:
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str | None) -> AsyncEngine:
    url = normalize_database_url(database_url)
    engine = create_async_engine(url, future=True, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


def alembic_config(database_url: str) -> Config:
    """Alembic config bound to the bundled migrations and ``database_url``."""

    cfg = Config(str(PACKAGE_DIR.parent / "alembic.ini"))
    cfg.set_main_option("script_location", str(PACKAGE_DIR / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    # keep the JSON handlers installed by configure_logging()
    cfg.attributes["configure_logger"] = False
    return cfg


async def _upgrade_to_head(database_url: str) -> None:
    cfg = alembic_config(database_url)
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, command.upgrade, cfg, "head")


async def _store_schema_version(
    session_factory: async_sessionmaker[AsyncSession], version: str
) -> None:
    async with session_factory() as session:
        setting = await session.scalar(
            select(SettingEntry).where(SettingEntry.key == SCHEMA_VERSION_KEY)
        )
        if setting is None:
            session.add(SettingEntry(key=SCHEMA_VERSION_KEY, value=version))
        else:
            setting.value = version
        await session.commit()


async def init_db(
    engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    version: str,
    database_url: str | None = None,
) -> None:
    """Bring the schema up to date and record the running app version.

    Migrations only run when ``database_url`` is given; ``create_all`` then
    fills in anything the migrations do not cover.
    """

    if database_url:
        await _upgrade_to_head(normalize_database_url(database_url))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await _store_schema_version(session_factory, version)
    logger.info(
        "database ready",
        extra={"extra_fields": {"dialect": engine.dialect.name, "schema_version": version}},
    )


__all__ = [
    "SCHEMA_VERSION_KEY",
    "alembic_config",
    "create_engine",
    "create_session_factory",
    "init_db",
]
