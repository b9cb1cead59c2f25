"""Tests for database connection."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.utils import db
from app.utils.db import DatabaseManager, get_db_url, init_db


@pytest.mark.asyncio
async def test_verify_connection_and_close():
    """Test: The manager connects lazily and forgets its engine on close."""
    manager = DatabaseManager(url="sqlite+aiosqlite:///:memory:")

    assert await manager.verify_connection() is True
    assert manager.session_factory is not None

    await manager.close()

    assert manager._engine is None
    assert manager._session_factory is None


def test_get_db_url_prefers_database_url(monkeypatch):
    monkeypatch.setattr(db.settings, "DATABASE_URL", "sqlite+aiosqlite:///x.db")

    assert get_db_url() == "sqlite+aiosqlite:///x.db"


def test_get_db_url_builds_postgres_url(monkeypatch):
    monkeypatch.setattr(db.settings, "DATABASE_URL", None)
    monkeypatch.setattr(db.settings, "DB_USER", "lms")
    monkeypatch.setattr(db.settings, "DB_PASSWORD", "secret")
    monkeypatch.setattr(db.settings, "DB_HOST", "db")
    monkeypatch.setattr(db.settings, "DB_PORT", 5433)
    monkeypatch.setattr(db.settings, "DB_NAME", "subjects")

    assert get_db_url() == "postgresql+asyncpg://lms:secret@db:5433/subjects"


@pytest.mark.asyncio
async def test_init_db_exits_on_migration_failure():
    """Test that init_db exits application when migrations fail."""
    with patch("app.utils.db.run_migrations", new_callable=AsyncMock) as mock_migrate:
        mock_migrate.side_effect = OperationalError("connection failed", None, None)

        with pytest.raises(SystemExit):
            await init_db()


@pytest.mark.asyncio
async def test_init_db_verifies_connection_after_migrations():
    with patch("app.utils.db.run_migrations", new_callable=AsyncMock) as mock_migrate:
        with patch.object(
            db.db_manager, "verify_connection", new_callable=AsyncMock
        ) as mock_verify:
            await init_db()

    mock_migrate.assert_awaited_once()
    mock_verify.assert_awaited_once()
