"""Unit tests for BaseService transaction management.

SpecialistService is used as the concrete service since it adds nothing
to the inherited CRUD operations.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseConnectionError,
    DuplicateRecordError,
    InvalidFilterError,
)
from app.models.specialist import Specialist
from app.services.specialist_service import SpecialistService


@pytest.mark.asyncio
async def test_create_commits_and_sets_timestamps(db_session: AsyncSession):
    """Test: create() persists the record with server-side timestamps."""
    # Arrange
    service = SpecialistService(db_session)

    # Act
    specialist = await service.create(name="Cyber Security", slug="cyber-security")

    # Assert
    assert specialist.id is not None
    assert specialist.is_active is True
    assert specialist.created_at is not None
    assert specialist.updated_at is not None

    found = await service.get_by_id(specialist.id)
    assert found is not None
    assert found.name == "Cyber Security"


@pytest.mark.asyncio
async def test_create_duplicate_raises_duplicate_error(db_session: AsyncSession):
    """Test: Unique violations surface as DuplicateRecordError after rollback."""
    # Arrange
    service = SpecialistService(db_session)
    await service.create(name="Cyber Security")

    # Act & Assert
    with pytest.raises(DuplicateRecordError) as exc_info:
        await service.create(name="Cyber Security")

    assert str(exc_info.value) == "Specialist with this value already exists"
    assert [s.name for s in await service.search()] == ["Cyber Security"]


@pytest.mark.asyncio
async def test_get_by_id_returns_none_for_missing(db_session: AsyncSession):
    service = SpecialistService(db_session)

    assert await service.get_by_id(9999) is None


@pytest.mark.asyncio
async def test_get_one_by_combines_filters(db_session: AsyncSession):
    # Arrange
    service = SpecialistService(db_session)
    await service.create(name="Networks", slug="networks", is_active=False)
    active = await service.create(name="Data Science", slug="data-science")

    # Act
    found = await service.get_one_by(slug="data-science", is_active=True)

    # Assert
    assert found is not None
    assert found.id == active.id
    assert await service.get_one_by(slug="networks", is_active=True) is None


@pytest.mark.asyncio
async def test_get_one_by(db_session: AsyncSession):
    service = SpecialistService(db_session)
    created = await service.create(name="Networks", slug="networks")

    found = await service.get_one_by(slug="networks")

    assert found is not None
    assert found.id == created.id
    assert await service.get_one_by(slug="missing") is None


@pytest.mark.asyncio
async def test_invalid_filter_key(db_session: AsyncSession):
    service = SpecialistService(db_session)

    with pytest.raises(InvalidFilterError) as exc_info:
        await service.get_one_by(unknown_field="value")

    assert "unknown_field" in str(exc_info.value)


@pytest.mark.asyncio
async def test_save_bumps_updated_at(db_session: AsyncSession):
    # Arrange
    service = SpecialistService(db_session)
    specialist = await service.create(name="Networks")

    # Act
    specialist.description = "Routing and switching"
    saved = await service.save(specialist)

    # Assert
    assert saved.description == "Routing and switching"
    assert saved.updated_at is not None


@pytest.mark.asyncio
async def test_delete_removes_record(db_session: AsyncSession):
    service = SpecialistService(db_session)
    specialist = await service.create(name="Networks")

    await service.delete(specialist)

    assert await service.get_by_id(specialist.id) is None


@pytest.mark.asyncio
async def test_read_failure_becomes_database_error():
    """Test: Driver errors during reads are wrapped in DatabaseConnectionError."""
    # Arrange
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    service = SpecialistService(session)

    # Act & Assert
    with pytest.raises(DatabaseConnectionError) as exc_info:
        await service.get_by_id(1)

    assert "Database error during get" in str(exc_info.value)


@pytest.mark.asyncio
async def test_write_failure_rolls_back():
    """Test: Driver errors during writes roll back the session."""
    # Arrange
    session = AsyncMock(spec=AsyncSession)
    session.add = lambda instance: None
    session.flush.side_effect = OperationalError("INSERT", {}, Exception("down"))
    service = SpecialistService(session)

    # Act & Assert
    with pytest.raises(DatabaseConnectionError):
        await service.create(name="Networks")

    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()


def test_model_name():
    assert SpecialistService(AsyncMock()).model_name == Specialist.__name__
