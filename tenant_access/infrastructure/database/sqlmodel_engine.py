"""
Async engine and session handling for the PostgreSQL record store.

The schema itself is owned by Alembic (see ``migrations/``); this module only
connects, hands out sessions and reports pool health.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.sql import text

from tenant_access.core.config import Settings

logger = structlog.get_logger(__name__)

ASYNC_DRIVER_PREFIX = "postgresql+asyncpg://"


def to_async_url(url: str) -> str:
    """Point a plain PostgreSQL URL at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return ASYNC_DRIVER_PREFIX + url[len(prefix):]
    return url


def mask_credentials(url: str) -> str:
    if "@" not in url:
        return url
    head, host = url.rsplit("@", 1)
    scheme, _, userinfo = head.partition("://")
    return f"{scheme}://{userinfo.split(':', 1)[0]}:***@{host}"


class DatabaseManager:
    """
    Connection pool of the record store.

    Created and disposed by the engine container; there is no module-level
    instance.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    async def initialize(self) -> None:
        """Create the pool and verify the database answers."""
        if self.engine is not None:
            logger.warning("Database manager already initialized")
            return

        url = to_async_url(self.settings.get_postgres_url())
        engine = create_async_engine(
            url,
            pool_size=self.settings.POSTGRES_POOL_SIZE,
            max_overflow=self.settings.POSTGRES_POOL_SIZE * 2,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args={"server_settings": {"application_name": "tenant-access-engine"}},
        )
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Record store database unreachable", url=mask_credentials(url), error=str(e))
            await engine.dispose()
            raise

        self.engine = engine
        self.session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Record store database connected", url=mask_credentials(url))

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session committed on success and rolled back on any error."""
        if self.session_factory is None:
            raise RuntimeError("Database manager not initialized")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> Dict[str, Any]:
        if self.engine is None:
            return {"status": "unhealthy", "error": "Database manager not initialized"}

        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Record store health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

        pool = self.engine.pool
        return {
            "status": "healthy",
            "pool_size": pool.size(),
            "checked_out": pool.checkedout(),
        }

    async def shutdown(self) -> None:
        if self.engine is None:
            return
        try:
            await self.engine.dispose()
            logger.info("Record store database disconnected")
        finally:
            self.engine = None
            self.session_factory = None


__all__ = ["DatabaseManager", "mask_credentials", "to_async_url"]
