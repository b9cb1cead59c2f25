"""Pytest configuration and shared fixtures."""

import os

# Test environment must be in place before app modules read it
os.environ.setdefault("API_TITLE", "LMS Subject Directory Test")
os.environ.setdefault("API_VERSION", "0.1.0-test")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")
os.environ.setdefault("DB_USER", "test_user")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("DB_NAME", "test_db")

from typing import AsyncGenerator, Dict, Iterable, List, Optional, Set  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.config import Settings, get_settings  # noqa: E402
from app.exceptions import RecordNotFoundError  # noqa: E402
from app.models.course import Course  # noqa: E402
from app.models.specialist import Specialist  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.utils.db import Base, get_db_session  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeCourseChecker:
    """In-memory course reference checker."""

    def __init__(self, counts: Optional[Dict[int, int]] = None) -> None:
        self.counts: Dict[int, int] = dict(counts or {})
        self.calls: List[int] = []

    async def count_referencing_subject(self, subject_id: int) -> int:
        self.calls.append(subject_id)
        return self.counts.get(subject_id, 0)


class FakeSpecialistLookup:
    """In-memory user to specialists mapping."""

    def __init__(self, assignments: Optional[Dict[int, Iterable[int]]] = None) -> None:
        self.assignments: Dict[int, Set[int]] = {
            user_id: set(ids) for user_id, ids in (assignments or {}).items()
        }

    async def get_assigned_specialists(self, user_id: int) -> Set[int]:
        if user_id not in self.assignments:
            raise RecordNotFoundError("User", user_id)
        return set(self.assignments[user_id])


@pytest.fixture
def course_checker() -> FakeCourseChecker:
    """Course checker reporting no courses unless told otherwise."""
    return FakeCourseChecker()


@pytest.fixture
def specialist_lookup() -> FakeSpecialistLookup:
    """Specialist lookup knowing no users until assignments are added."""
    return FakeSpecialistLookup()


@pytest.fixture
def settings() -> Settings:
    """Application settings for the test environment."""
    return get_settings()


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the full schema created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Database session bound to the per-test engine."""
    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def specialists(db_session: AsyncSession) -> List[Specialist]:
    """Three specialists: Software Engineering, Data Science, Networks."""
    items = [
        Specialist(name="Software Engineering", slug="software-engineering"),
        Specialist(name="Data Science", slug="data-science"),
        Specialist(name="Networks", slug="networks"),
    ]
    db_session.add_all(items)
    await db_session.commit()
    return items


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory creating a persisted user with specialist assignments."""
    counter = {"value": 0}

    async def factory(
        role: UserRole = UserRole.TEACHER, specialist_ids: Iterable[int] = ()
    ) -> User:
        counter["value"] += 1
        number = counter["value"]
        user = User(
            username=f"user{number}",
            email=f"user{number}@lms.test",
            fullname=f"User {number}",
            role=role,
        )
        user.specialist_ids.extend(specialist_ids)
        db_session.add(user)
        await db_session.commit()
        return user

    return factory


@pytest.fixture
def make_course(db_session: AsyncSession):
    """Factory creating a persisted course for a subject."""

    async def factory(subject_id: int, title: str = "Course") -> Course:
        course = Course(title=title, subject_id=subject_id)
        db_session.add(course)
        await db_session.commit()
        return course

    return factory


@pytest.fixture
def app(db_session: AsyncSession):
    """FastAPI application using the test session, without DB lifecycle."""
    from app.application import create_app

    with patch("app.application.init_db", new_callable=AsyncMock):
        with patch("app.application.close_db", new_callable=AsyncMock):
            application = create_app()

            async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
                yield db_session

            application.dependency_overrides[get_db_session] = override_db_session
            yield application
            application.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client for the FastAPI application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def api_headers(settings: Settings) -> Dict[str, str]:
    """Headers carrying only the API key."""
    return {"X-API-KEY": settings.api_key}


@pytest.fixture
def admin_headers(api_headers: Dict[str, str]) -> Dict[str, str]:
    """Headers of an admin caller."""
    return {**api_headers, "X-User-Id": "1", "X-User-Role": "admin"}
