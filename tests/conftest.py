'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. Forcing the application into TEST_MODE before any application code is imported.
2. A fresh in-memory SQLite database and session for every test.
3. An httpx AsyncClient bound to the app, with `get_db_session` overridden to the test session.
4. Instances of all service classes, pre-injected with the test session.
5. Seed data built with the factories in tests/database/factories.py.
'''

import os

os.environ["TEST_MODE"] = "True"

import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine

from tests.constants import TEST_DATABASE_URL
from tests.database import factories

# --- Application Imports ---
from torah_connect_backend.main import app
from torah_connect_backend.common.config import settings
from torah_connect_backend.database.engine import get_db_session, build_engine, build_session_factory
from torah_connect_backend.database.models import Base
from torah_connect_backend.database import models as db_models
from torah_connect_backend.database.db_enums import ApprovalStatus, CourseAudience, Gender
from torah_connect_backend.services.user_service import UserService, ProfileService, AdminService
from torah_connect_backend.services.matching_service import MatchingService
from torah_connect_backend.services.course_service import CourseService
from torah_connect_backend.services.donation_service import DonationService
from torah_connect_backend.services.trial_service import TrialService
from torah_connect_backend.services.approval_service import ApprovalService
from torah_connect_backend.services.finance_service import (
    SalarySettingsService,
    TeacherHoursService,
    HoursAggregator,
    MonthlyPaymentService
)
from torah_connect_backend.services.chat_service import ChatService
from torah_connect_backend.services.live_class_service import LiveClassService
from torah_connect_backend.services.withdrawal_service import WithdrawalService


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio'.
    2. Promotes the scope to 'session'.
    """
    return "asyncio"


# --- 1. Database Fixtures ---

@pytest.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A brand new in-memory database with every table created."""
    assert settings.TEST_MODE is True, "TEST_MODE was not set to True!"

    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    The session shared by services, factories and the API client within one test.
    """
    session_factory = build_session_factory(db_engine)
    session = session_factory()
    factories.test_db_session = session.sync_session
    try:
        yield session
    finally:
        factories.test_db_session = None
        await session.rollback()
        await session.close()


# --- 2. API Client ---

@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    An httpx client talking to the app in-process. Every request uses the
    test session, so data created by factories is visible to the endpoints.
    """
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


# --- 3. Service Fixtures ---

@pytest.fixture(scope="function")
def user_service(db_session: AsyncSession) -> UserService:
    return UserService(db=db_session)

@pytest.fixture(scope="function")
def profile_service(db_session: AsyncSession) -> ProfileService:
    return ProfileService(db=db_session)

@pytest.fixture(scope="function")
def admin_service(db_session: AsyncSession) -> AdminService:
    return AdminService(db=db_session)

@pytest.fixture(scope="function")
def matching_service(db_session: AsyncSession) -> MatchingService:
    return MatchingService(db=db_session)

@pytest.fixture(scope="function")
def course_service(db_session: AsyncSession) -> CourseService:
    return CourseService(db=db_session)

@pytest.fixture(scope="function")
def donation_service(db_session: AsyncSession) -> DonationService:
    return DonationService(db=db_session)

@pytest.fixture(scope="function")
def trial_service(
    db_session: AsyncSession,
    course_service: CourseService,
    donation_service: DonationService
) -> TrialService:
    return TrialService(db=db_session, course_service=course_service, donation_service=donation_service)

@pytest.fixture(scope="function")
def approval_service(db_session: AsyncSession) -> ApprovalService:
    return ApprovalService(db=db_session)

@pytest.fixture(scope="function")
def salary_settings_service(db_session: AsyncSession) -> SalarySettingsService:
    return SalarySettingsService(db=db_session)

@pytest.fixture(scope="function")
def teacher_hours_service(db_session: AsyncSession) -> TeacherHoursService:
    return TeacherHoursService(db=db_session)

@pytest.fixture(scope="function")
def mock_hours_aggregator() -> HoursAggregator:
    """An aggregator whose totals each test configures."""
    mock_aggregator = AsyncMock(spec=HoursAggregator)
    mock_aggregator.total_hours = AsyncMock(return_value=0)
    return mock_aggregator

@pytest.fixture(scope="function")
def payment_service(
    db_session: AsyncSession,
    salary_settings_service: SalarySettingsService
) -> MonthlyPaymentService:
    """Uses the real aggregator over teacher_hours rows."""
    return MonthlyPaymentService(
        db=db_session,
        hours_aggregator=HoursAggregator(db=db_session),
        salary_settings_service=salary_settings_service
    )

@pytest.fixture(scope="function")
def chat_service(db_session: AsyncSession) -> ChatService:
    return ChatService(db=db_session)

@pytest.fixture(scope="function")
def live_class_service(db_session: AsyncSession) -> LiveClassService:
    return LiveClassService(db=db_session)

@pytest.fixture(scope="function")
def withdrawal_service(db_session: AsyncSession) -> WithdrawalService:
    return WithdrawalService(db=db_session)


# --- 4. Data Fixtures ---

@pytest.fixture(scope="function")
async def test_admin_orm(db_session: AsyncSession) -> db_models.Profiles:
    admin = factories.AdminFactory()
    await db_session.flush()
    return admin

@pytest.fixture(scope="function")
async def test_teacher_orm(db_session: AsyncSession) -> db_models.Profiles:
    """An approved male teacher teaching men and children."""
    teacher = factories.TeacherFactory(
        audiences=[CourseAudience.MEN.value, CourseAudience.CHILDREN.value]
    )
    await db_session.flush()
    return teacher

@pytest.fixture(scope="function")
async def test_pending_teacher_orm(db_session: AsyncSession) -> db_models.Profiles:
    teacher = factories.TeacherFactory(approval_status=ApprovalStatus.PENDING.value)
    await db_session.flush()
    return teacher

@pytest.fixture(scope="function")
async def test_student_orm(db_session: AsyncSession) -> db_models.Profiles:
    """A male student with an unused allowance of two trials."""
    student = factories.StudentFactory()
    await db_session.flush()
    return student

@pytest.fixture(scope="function")
async def test_female_student_orm(db_session: AsyncSession) -> db_models.Profiles:
    student = factories.StudentFactory(gender=Gender.FEMALE.value, first_name="Miriam")
    await db_session.flush()
    return student

@pytest.fixture(scope="function")
async def test_course_orm(db_session: AsyncSession, test_teacher_orm: db_models.Profiles) -> db_models.Courses:
    course = factories.CourseFactory(teacher=test_teacher_orm)
    await db_session.flush()
    return course
