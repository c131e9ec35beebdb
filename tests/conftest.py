"""
Pytest configuration for the entire test suite.

Points the app at a throwaway SQLite file before anything under `src` is
imported, recreates the schema for every test and provides one account per
role with a bearer token.
"""
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="cho-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length"
os.environ["CLINIC_TIMEZONE"] = "Asia/Manila"
os.environ["LLM_ENDPOINT_URL"] = ""

from datetime import date, datetime, time, timedelta  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytz  # noqa: E402

from src.auth.auth_service import compose_name, hash_password, issue_token_for  # noqa: E402
from src.common.database.database import async_session, engine  # noqa: E402
from src.main import app  # noqa: E402
from src.models.models import (  # noqa: E402
    Appointment,
    AppointmentStatus,
    Base,
    DoctorSchedule,
    Patient,
    UserRole,
)
from src.modules.schedules.availability import WEEKDAY_NAMES  # noqa: E402
from src.policy.dependencies import build_policy_context  # noqa: E402

PASSWORD = "Secret@123"
MANILA = pytz.timezone("Asia/Manila")


# ============================================================================
# Helpers
# ============================================================================

def weekday_hours(start="08:00", end="17:00", breaks=(("12:00", "13:00"),)):
    """Working hours open Monday to Friday, closed on weekends."""
    hours = []
    for name in WEEKDAY_NAMES:
        enabled = name not in ("Sunday", "Saturday")
        hours.append({
            "day_of_week": name,
            "is_enabled": enabled,
            "start_time": start if enabled else None,
            "end_time": end if enabled else None,
            "break_times": [{"start_time": s, "end_time": e} for s, e in breaks] if enabled else [],
        })
    return hours


def manila(day: date, hour: int, minute: int = 0) -> datetime:
    return MANILA.localize(datetime.combine(day, time(hour, minute)))


def next_weekday(weekday: int, after: date = None) -> date:
    """First date strictly after `after` (default today) falling on `weekday` (Monday is 0)."""
    after = after or datetime.now(MANILA).date()
    days_ahead = (weekday - after.weekday() - 1) % 7 + 1
    return after + timedelta(days=days_ahead)


def auth_headers(user: Patient) -> dict:
    return {"Authorization": f"Bearer {issue_token_for(user)}"}


async def create_account(role: UserRole, first_name: str, last_name: str, email: str) -> Patient:
    async with async_session() as session:
        account = Patient(
            email=email,
            password_hash=hash_password(PASSWORD),
            role=role,
            first_name=first_name,
            last_name=last_name,
            name=compose_name(first_name, None, last_name),
        )
        session.add(account)
        await session.commit()
        return account


async def create_appointment(patient: Patient, doctor: Patient, start: datetime, status=AppointmentStatus.COMPLETED):
    async with async_session() as session:
        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_start=start.astimezone(pytz.utc),
            appointment_end=(start + timedelta(minutes=30)).astimezone(pytz.utc),
            duration_minutes=30,
            status=status,
            reason_for_visit="Prenatal check-up",
        )
        session.add(appointment)
        await session.commit()
        return appointment


async def context_for(user: Patient):
    async with async_session() as session:
        fresh = await session.get(Patient, user.id)
        return await build_policy_context(session, fresh)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
async def database():
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db_session():
    async with async_session() as session:
        yield session


@pytest.fixture
async def admin():
    return await create_account(UserRole.ADMIN, "City", "Admin", "admin@example.com")


@pytest.fixture
async def doctor():
    return await create_account(UserRole.DOCTOR, "Maria", "Santos", "maria.santos@example.com")


@pytest.fixture
async def other_doctor():
    return await create_account(UserRole.DOCTOR, "Jose", "Reyes", "jose.reyes@example.com")


@pytest.fixture
async def midwife():
    return await create_account(UserRole.MIDWIFE_NURSE, "Ana", "Cruz", "ana.cruz@example.com")


@pytest.fixture
async def patient():
    return await create_account(UserRole.PATIENT, "Liza", "Garcia", "liza.garcia@example.com")


@pytest.fixture
async def other_patient():
    return await create_account(UserRole.PATIENT, "Rosa", "Mendoza", "rosa.mendoza@example.com")


@pytest.fixture
async def schedule(doctor):
    """Doctor works weekdays 08:00 to 17:00 with a lunch break, 30 minute slots, no notice."""
    async with async_session() as session:
        record = DoctorSchedule(
            doctor_id=doctor.id,
            working_hours=weekday_hours(),
            default_slot_duration_minutes=30,
            notice_period_hours=0,
            unavailable_dates=[],
        )
        session.add(record)
        await session.commit()
        return record


@pytest.fixture
async def related(patient, doctor):
    """A past completed visit linking the doctor to the patient."""
    return await create_appointment(patient, doctor, manila(date(2024, 5, 6), 9))


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
