"""Tests for the PostgreSQL engine helpers that need no running database."""

import pytest

from tenant_access.core.config import Settings
from tenant_access.infrastructure.database.sqlmodel_engine import (
    DatabaseManager,
    mask_credentials,
    to_async_url,
)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgresql://u:p@db:5432/x", "postgresql+asyncpg://u:p@db:5432/x"),
        ("postgres://u:p@db/x", "postgresql+asyncpg://u:p@db/x"),
        ("postgresql+asyncpg://u:p@db/x", "postgresql+asyncpg://u:p@db/x"),
    ],
)
def test_to_async_url(url, expected):
    assert to_async_url(url) == expected


def test_mask_credentials():
    assert mask_credentials("postgresql+asyncpg://user:secret@db:5432/x") == "postgresql+asyncpg://user:***@db:5432/x"
    assert mask_credentials("sqlite://") == "sqlite://"


async def test_uninitialized_manager():
    manager = DatabaseManager(Settings(RECORD_STORE_BACKEND="postgres"))

    assert manager.is_initialized is False
    assert (await manager.health_check())["status"] == "unhealthy"
    with pytest.raises(RuntimeError):
        async with manager.get_session():
            pass
    await manager.shutdown()
