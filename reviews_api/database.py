import logging
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import Depends, Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the async engine (and its connection pool) plus the session factory.

    Built once at startup by the app lifespan and disposed at shutdown. Routes
    never touch it directly; they receive sessions through ``get_db``.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 20,
        pool_timeout: float = 2.0,
        pool_recycle: int = 30,
        echo: bool = False,
    ):
        engine_kwargs = {}
        sqlite_path = make_url(url).database if url.startswith("sqlite") else None
        if sqlite_path and sqlite_path != ":memory:":
            Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
        # SQLite picks its own pool class; sizing only applies to server databases.
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=0,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )
        self.url = url
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

        event.listen(self.engine.sync_engine, "connect", _on_connect)
        event.listen(self.engine.sync_engine, "close", _on_close)

    async def create_all(self) -> None:
        # Import for side effect: registers the tables on Base.metadata.
        from reviews_api import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Connection pool closed")


def _on_connect(dbapi_connection, connection_record):
    logger.debug("Database client connected")


def _on_close(dbapi_connection, connection_record):
    logger.debug("Database client disconnected")


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session
