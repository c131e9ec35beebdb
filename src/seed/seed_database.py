# src/seed/seed_database.py
"""
Database seed script for local development.
Creates an admin, providers with schedules, and patients with a short
clinical history so every role has something to look at.

Usage:
    python -m src.seed.seed_database

Options:
    --clear     Clear existing data before seeding
"""

import asyncio
import argparse
from datetime import date, datetime, time, timedelta
from typing import List

import pytz
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.auth_service import compose_name, hash_password
from src.common.config import settings
from src.common.database.database import async_session
from src.modules.bmi.bmi_service import compute_bmi
from src.modules.schedules.availability import WEEKDAY_NAMES
from src.models.models import (
    Appointment,
    AppointmentStatus,
    ArchivedBabyRecord,
    ArchivedBmiRecord,
    ArchivedConsultation,
    ArchivedMaternityRecord,
    ArchivedPatient,
    AuditLog,
    BabyRecord,
    BmiRecord,
    Consultation,
    ConsultationSubject,
    DoctorSchedule,
    MaternityRecord,
    Patient,
    UserRole,
)


# ============================================================================
# SAMPLE DATA
# ============================================================================

STAFF = [
    # (first, last, email, role, password)
    ("City", "Administrator", "admin@cho.example.com", UserRole.ADMIN, "Admin@123"),
    ("Maria", "Santos", "maria.santos@cho.example.com", UserRole.DOCTOR, "Doctor@123"),
    ("Jose", "Reyes", "jose.reyes@cho.example.com", UserRole.DOCTOR, "Doctor@123"),
    ("Ana", "Cruz", "ana.cruz@cho.example.com", UserRole.MIDWIFE_NURSE, "Midwife@123"),
]

PATIENTS = [
    # (first, last, city, province, blood type)
    ("Liza", "Garcia", "Cebu City", "Cebu", "O+"),
    ("Rosa", "Mendoza", "Mandaue", "Cebu", "A+"),
    ("Carmen", "Bautista", "Lapu-Lapu", "Cebu", "B+"),
]

REASONS = [
    "Prenatal check-up, second trimester",
    "Postnatal visit and newborn screening",
    "Persistent headache and swelling of the feet",
]


def weekday_hours() -> list:
    """Monday to Friday, 08:00 to 17:00 with a lunch break."""
    hours = []
    for name in WEEKDAY_NAMES:
        enabled = name not in ("Sunday", "Saturday")
        hours.append({
            "day_of_week": name,
            "is_enabled": enabled,
            "start_time": "08:00" if enabled else None,
            "end_time": "17:00" if enabled else None,
            "break_times": [{"start_time": "12:00", "end_time": "13:00"}] if enabled else [],
        })
    return hours


# ============================================================================
# SEED FUNCTIONS
# ============================================================================

def _account(first_name: str, last_name: str, email: str, role: UserRole, password: str) -> Patient:
    return Patient(
        email=email,
        password_hash=hash_password(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        name=compose_name(first_name, None, last_name),
    )


async def create_staff(session: AsyncSession) -> List[Patient]:
    """Create admin and provider accounts"""
    staff = [_account(*row) for row in STAFF]
    session.add_all(staff)
    await session.flush()
    print(f"✓ Created {len(staff)} staff accounts")
    return staff


async def create_patients(session: AsyncSession) -> List[Patient]:
    patients = []
    for index, (first_name, last_name, city, province, blood_type) in enumerate(PATIENTS):
        patient = _account(
            first_name,
            last_name,
            f"{first_name.lower()}.{last_name.lower()}@example.com",
            UserRole.PATIENT,
            "Patient@123",
        )
        patient.city = city
        patient.province = province
        patient.blood_type = blood_type
        patient.sex = "Female"
        patient.date_of_birth = date(1990 + index * 3, 3 + index, 12)
        patients.append(patient)

    session.add_all(patients)
    await session.flush()
    print(f"✓ Created {len(patients)} patients")
    return patients


async def create_schedules(session: AsyncSession, doctors: List[Patient]) -> None:
    for doctor in doctors:
        session.add(DoctorSchedule(
            doctor_id=doctor.id,
            working_hours=weekday_hours(),
            default_slot_duration_minutes=30,
            notice_period_hours=24,
            unavailable_dates=[],
        ))
    await session.flush()
    print(f"✓ Created {len(doctors)} doctor schedules")


async def create_history(session: AsyncSession, doctor: Patient, patients: List[Patient]) -> None:
    """A completed visit per patient, so the doctor can see their records."""
    tz = pytz.timezone(settings.CLINIC_TIMEZONE)
    today = datetime.now(tz).date()

    for index, patient in enumerate(patients):
        visit_day = today - timedelta(days=7 * (index + 1))
        start = tz.localize(datetime.combine(visit_day, time(9, 0))).astimezone(pytz.utc)
        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_start=start,
            appointment_end=start + timedelta(minutes=30),
            duration_minutes=30,
            status=AppointmentStatus.COMPLETED,
            reason_for_visit=REASONS[index % len(REASONS)],
        )
        session.add(appointment)
        await session.flush()

        session.add(Consultation(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_id=appointment.id,
            date=visit_day,
            notes=f"Seen for: {appointment.reason_for_visit}.",
            diagnosis="Normal findings",
            treatment_plan="Continue prenatal vitamins; return in four weeks.",
            subject_type=ConsultationSubject.MOTHER,
        ))
        session.add(MaternityRecord(
            patient_id=patient.id,
            pregnancy_number=1,
            delivery_date=visit_day - timedelta(days=365),
            outcome="Live birth, normal spontaneous delivery",
        ))
        session.add(BabyRecord(
            mother_id=patient.id,
            name=f"Baby {patient.last_name}",
            birth_date=visit_day - timedelta(days=365),
            birth_weight="3.1 kg",
            birth_length="49 cm",
            apgar_score="9",
            vaccinations=[{"date": (visit_day - timedelta(days=365)).isoformat(), "vaccine": "BCG", "notes": None}],
            checkups=[],
        ))
        session.add(BmiRecord(
            patient_id=patient.id,
            date=appointment.appointment_start,
            weight_kg=58.5,
            height_m=1.55,
            bmi=compute_bmi(58.5, 1.55),
            recorded_by_id=doctor.id,
            recorded_by_name=doctor.name,
        ))

    await session.flush()
    print(f"✓ Created visit history for {len(patients)} patients")


async def clear_database(session: AsyncSession):
    """Clear all data from database"""
    print("\n🗑️  Clearing existing data...")

    tables = [
        AuditLog, Appointment, DoctorSchedule,
        ArchivedBmiRecord, ArchivedBabyRecord, ArchivedMaternityRecord, ArchivedConsultation, ArchivedPatient,
        BmiRecord, BabyRecord, MaternityRecord, Consultation, Patient,
    ]

    for table in tables:
        await session.execute(delete(table))

    await session.commit()
    print("✓ Database cleared")


async def seed_database(clear: bool = False):
    """Main seeding function"""
    print("\n" + "=" * 60)
    print("🌱 CITY HEALTH OFFICE DATABASE SEEDER")
    print("=" * 60 + "\n")

    async with async_session() as session:
        try:
            if clear:
                await clear_database(session)

            print("📦 Creating seed data...\n")

            staff = await create_staff(session)
            doctors = [account for account in staff if account.role == UserRole.DOCTOR]
            patients = await create_patients(session)
            await create_schedules(session, doctors)
            await create_history(session, doctors[0], patients)

            await session.commit()

            print("\n" + "=" * 60)
            print("✅ DATABASE SEEDING COMPLETE!")
            print("=" * 60)
            print("\n📋 Test Credentials:")
            print("-" * 40)
            print("Admin:    admin@cho.example.com / Admin@123")
            print("Doctor:   maria.santos@cho.example.com / Doctor@123")
            print("Midwife:  ana.cruz@cho.example.com / Midwife@123")
            print("Patient:  liza.garcia@example.com / Patient@123")
            print("-" * 40 + "\n")

        except Exception as e:
            await session.rollback()
            print(f"\n❌ Error during seeding: {e}")
            raise


def main():
    parser = argparse.ArgumentParser(description="Seed the City Health Office database with sample data")
    parser.add_argument("--clear", action="store_true", help="Clear existing data before seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(clear=args.clear))


if __name__ == "__main__":
    main()
