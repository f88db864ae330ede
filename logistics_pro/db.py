import asyncio
import logging

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from logistics_pro.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Engine and session factory, created once per process and disposed on shutdown."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        self.session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async def ping(self):
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def wait_until_ready(self, attempts: int = 10, delay: float = 3.0):
        """Poll the database with a fixed backoff until it answers."""
        for attempt in range(1, attempts + 1):
            try:
                await self.ping()
                logger.info("Database reachable (attempt %s/%s)", attempt, attempts)
                return
            except Exception as exc:
                if attempt == attempts:
                    logger.error("Database still unreachable after %s attempts", attempts)
                    raise
                logger.warning(
                    "Database not ready (attempt %s/%s): %s; retrying in %ss",
                    attempt, attempts, exc, delay,
                )
                await asyncio.sleep(delay)

    async def create_tables(self):
        import logistics_pro.models  # registers every model on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Dependency
async def get_db(request: Request):
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
