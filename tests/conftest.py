'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. Forcing the application into TEST_MODE (in-memory SQLite) before any code is imported.
2. Providing a fresh database and session per service test.
3. Providing a FastAPI TestClient for endpoint testing.
4. Providing instances of all service classes, pre-injected with the test db session.
'''

import os

# Must happen before the settings object is created on import.
os.environ["TEST_MODE"] = "True"
os.environ["CREATE_TABLES_ON_STARTUP"] = "True"

from tests.constants import TEST_ADMIN_EMAIL, TEST_ADMIN_PASSWORD

os.environ["BOOTSTRAP_ADMIN_EMAIL"] = TEST_ADMIN_EMAIL
os.environ["BOOTSTRAP_ADMIN_PASSWORD"] = TEST_ADMIN_PASSWORD

import pytest
from typing import AsyncGenerator

# --- FastAPI & Testing Imports ---
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine

# --- Application Imports ---
from src.halaqoh_roster.main import app
from src.halaqoh_roster.common.config import settings
from src.halaqoh_roster.database.engine import _engine_options
from src.halaqoh_roster.database import models as db_models
from src.halaqoh_roster.services.identity_service import IdentityService
from src.halaqoh_roster.services.provisioning_service import ProvisioningService
from src.halaqoh_roster.services.roster_service import RosterService
from src.halaqoh_roster.services.circle_service import CircleService, StudentService
from src.halaqoh_roster.services.log_service import RecitationService, AttendanceService
from tests.database import factories


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio' (solves 'trio' error).
    2. Promotes the scope to 'session' (solves 'ScopeMismatch').
    """
    return "asyncio"


# --- 1. App Fixture (For Endpoint Tests) ---

@pytest.fixture(scope="function")
def client() -> TestClient:
    """
    Runs the app's lifespan, which creates a brand new in-memory database,
    its tables and the bootstrap admin. Every test gets an empty roster.
    """
    assert settings.TEST_MODE is True, \
        "TEST_MODE was not set to True! Check your .env file or environment."

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# --- 2. Database Fixtures (For Service Tests) ---

@pytest.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    A private in-memory database per test. Provisioning commits each step,
    so isolation by rollback is not an option here.
    """
    url = settings.DATABASE_URL_TEST
    engine = create_async_engine(url, **_engine_options(url))
    async with engine.begin() as conn:
        await conn.run_sync(db_models.Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        factories.test_db_session = session
        yield session
    factories.test_db_session = None


# --- 3. SERVICE FIXTURES ---

@pytest.fixture(scope="function")
def identity_service(db_session: AsyncSession) -> IdentityService:
    return IdentityService(db=db_session)

@pytest.fixture(scope="function")
def provisioning_service(db_session: AsyncSession, identity_service: IdentityService) -> ProvisioningService:
    return ProvisioningService(db=db_session, identity_service=identity_service)

@pytest.fixture(scope="function")
def roster_service(db_session: AsyncSession) -> RosterService:
    return RosterService(db=db_session)

@pytest.fixture(scope="function")
def circle_service(db_session: AsyncSession) -> CircleService:
    return CircleService(db=db_session)

@pytest.fixture(scope="function")
def student_service(db_session: AsyncSession) -> StudentService:
    return StudentService(db=db_session)

@pytest.fixture(scope="function")
def recitation_service(db_session: AsyncSession) -> RecitationService:
    return RecitationService(db=db_session)

@pytest.fixture(scope="function")
def attendance_service(db_session: AsyncSession) -> AttendanceService:
    return AttendanceService(db=db_session)


# --- 4. DATA FIXTURES ---

@pytest.fixture(scope="function")
async def test_teacher_orm(db_session: AsyncSession) -> db_models.Profiles:
    """An active, fully provisioned teacher."""
    teacher = factories.create_teacher_account(full_name="Ustadz Ahmad")
    await db_session.commit()
    return teacher

@pytest.fixture(scope="function")
async def test_circle_orm(db_session: AsyncSession, test_teacher_orm: db_models.Profiles) -> db_models.Circles:
    """A circle taught by test_teacher_orm."""
    circle = factories.CircleFactory.create(name="Halaqoh Umar bin Khattab", teacher_id=test_teacher_orm.id)
    await db_session.commit()
    return circle

@pytest.fixture(scope="function")
async def test_student_orm(db_session: AsyncSession, test_circle_orm: db_models.Circles) -> db_models.Students:
    """An active student enrolled in test_circle_orm."""
    student = factories.StudentFactory.create(name="Muhammad Rizki", student_number="S001", circle_id=test_circle_orm.id)
    await db_session.commit()
    return student
