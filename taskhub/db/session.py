"""
Async SQLAlchemy engine & session factory, owned by an explicit ``Database`` handle.

One handle is built per application in ``create_app`` and lives on
``app.state.db``; it is opened in the lifespan and disposed at shutdown.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)
from sqlalchemy.pool import StaticPool

from taskhub.db.base import Base

logger = logging.getLogger(__name__)


def _engine_args(url: str) -> dict[str, Any]:
    args: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if "postgresql" in url:
        args.update({"pool_size": 20, "max_overflow": 10, "pool_recycle": 300})
    elif url.startswith("sqlite") and ":memory:" in url:
        # Every session must see the same in-memory database.
        args.update({"connect_args": {"check_same_thread": False}, "poolclass": StaticPool})
    return args


class Database:
    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **{**_engine_args(url), **engine_kwargs})
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        async with self.session_factory() as session:
            await session.execute(select(1))
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")
