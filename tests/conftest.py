"""
Pytest configuration and fixtures.
Provides an in-memory database, seeded users, a recording notification
channel and an HTTP client bound to the same database.
"""

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from dependency_injector import providers
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import practicum.models  # noqa: F401
from practicum.main import app
from practicum.core.integrations.notification_channels import NotificationChannel
from practicum.core.security import create_access_token
from practicum.db.base import Base
from practicum.db.repositories.placement_repository import PlacementRepository
from practicum.db.session import get_db
from practicum.deps.di_container import get_container
from practicum.models import (
    AcademicClass,
    FacultyAssignment,
    Placement,
    PlacementStatus,
    Site,
    TimesheetEntry,
    TimesheetEntryStatus,
    User,
    UserRole,
)
from practicum.services.notification_service import NotificationService


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Placement term used across tests: Sunday 2025-01-05 to Saturday 2025-05-31
TERM_START = date(2025, 1, 5)
TERM_END = date(2025, 5, 31)
WEEK_START = date(2025, 1, 12)


class RecordingChannel(NotificationChannel):
    """Delivery channel that keeps payloads in memory, or fails on demand."""

    name = "recording"

    def __init__(self, fail: bool = False):
        self.delivered = []
        self.fail = fail

    async def deliver(self, payload):
        if self.fail:
            raise ConnectionError("relay unavailable")
        self.delivered.append(payload)

    def kinds_for(self, user_id):
        return [p["kind"] for p in self.delivered if p["recipient_user_id"] == str(user_id)]


def reaction_text(words: int = 160) -> str:
    return " ".join(["reflection"] * words)


def journal_payload(words: int = 160) -> dict:
    return {
        "tasks_summary": "Intake interviews and case notes",
        "high_low_points": "Led my first group session",
        "competencies": ["2.1.1", "2.1.4"],
        "practice_behaviors": ["pb1", "pb7"],
        "reaction": reaction_text(words),
        "other_comments": None,
    }


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture(scope="function")
async def test_db_session(session_maker):
    """
    Create a test database session.
    Uses in-memory SQLite for fast tests.
    """
    async with session_maker() as session:
        yield session


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def notifier(test_db_session, channel):
    return NotificationService(test_db_session, channel)


@pytest.fixture
async def seed(test_db_session):
    """Site, class SWK404, and one user per role with the student assigned to `faculty`."""
    session = test_db_session

    site = Site(name="Riverside Family Services")
    other_site = Site(name="Northside Clinic")
    session.add_all([site, other_site])
    await session.flush()

    def user(email, first, last, role, **kwargs):
        return User(email=email, first_name=first, last_name=last, role=role, is_active=True, **kwargs)

    student = user("sam.student@example.edu", "Sam", "Student", UserRole.STUDENT)
    other_student = user("olive.other@example.edu", "Olive", "Other", UserRole.STUDENT)
    faculty = user("fay.faculty@example.edu", "Fay", "Faculty", UserRole.FACULTY)
    other_faculty = user("finn.faculty@example.edu", "Finn", "Faculty", UserRole.FACULTY)
    admin = user("ada.admin@example.edu", "Ada", "Admin", UserRole.ADMIN)
    supervisor = user("sue.supervisor@riverside.org", "Sue", "Supervisor", UserRole.SUPERVISOR, site_id=site.id)
    other_supervisor = user("nat.north@northside.org", "Nat", "North", UserRole.SUPERVISOR, site_id=other_site.id)
    session.add_all([student, other_student, faculty, other_faculty, admin, supervisor, other_supervisor])
    await session.flush()

    swk404 = AcademicClass(code="SWK404", name="Field Practicum I", faculty_id=faculty.id)
    swk405 = AcademicClass(code="SWK405", name="Field Practicum II", faculty_id=other_faculty.id)
    session.add_all([swk404, swk405])
    session.add(FacultyAssignment(student_id=student.id, faculty_id=faculty.id))
    await session.commit()

    return SimpleNamespace(
        site=site,
        other_site=other_site,
        swk404=swk404,
        swk405=swk405,
        student=student,
        other_student=other_student,
        faculty=faculty,
        other_faculty=other_faculty,
        admin=admin,
        supervisor=supervisor,
        other_supervisor=other_supervisor,
    )


@pytest.fixture
def make_placement(test_db_session, seed):
    """Insert a placement directly in the given status."""

    async def _make(status=PlacementStatus.ACTIVE, supervisor=True, **overrides):
        values = dict(
            student_id=seed.student.id,
            site_id=seed.site.id,
            faculty_id=seed.faculty.id,
            class_id=seed.swk404.id,
            supervisor_id=seed.supervisor.id if supervisor else None,
            start_date=TERM_START,
            end_date=TERM_END,
            required_hours=Decimal("400"),
            status=status,
        )
        values.update(overrides)
        placement = Placement(**values)
        test_db_session.add(placement)
        await test_db_session.commit()
        return await PlacementRepository(test_db_session).get_fresh(placement.id)

    return _make


@pytest.fixture
def make_week(test_db_session):
    """Insert DRAFT entries on consecutive days of a week."""

    async def _make(placement, hours=(8, 8, 8, 8, 8), week_start=WEEK_START, status=TimesheetEntryStatus.DRAFT):
        entries = [
            TimesheetEntry(
                placement_id=placement.id,
                date=week_start + timedelta(days=offset + 1),
                hours=Decimal(str(h)),
                status=status,
                locked=status == TimesheetEntryStatus.APPROVED,
            )
            for offset, h in enumerate(hours)
        ]
        test_db_session.add_all(entries)
        await test_db_session.commit()
        return entries

    return _make


@pytest.fixture(scope="function")
async def test_client(session_maker, channel):
    """
    HTTP client against the app, with each request on its own session from the
    test engine and notifications captured by `channel`.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()
    container = get_container()
    container.notification_channel.override(providers.Object(channel))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    container.notification_channel.reset_override()
    app.dependency_overrides.clear()
