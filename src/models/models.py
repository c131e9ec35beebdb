# src/models/models.py

import uuid
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Column, Date, DateTime, Float, Index, Integer, String, Text, Uuid,
    Enum as SAEnum,
    func, text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Timestamps are stored in UTC; some backends hand them back without tzinfo."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# ============================================================================
# ENUMS
# ============================================================================

class UserRole(enum.Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    MIDWIFE_NURSE = "midwife/nurse"
    PATIENT = "patient"


class AppointmentStatus(enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED_BY_PATIENT = "cancelledByPatient"
    CANCELLED_BY_DOCTOR = "cancelledByDoctor"
    CANCELLED_BY_ADMIN = "cancelledByAdmin"


# Statuses that still occupy a provider's time
ACTIVE_APPOINTMENT_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED)
TERMINAL_APPOINTMENT_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED_BY_PATIENT,
    AppointmentStatus.CANCELLED_BY_DOCTOR,
    AppointmentStatus.CANCELLED_BY_ADMIN,
)


class ConsultationSubject(enum.Enum):
    MOTHER = "mother"
    BABY = "baby"


class AuditAction(enum.Enum):
    USER_CREATED = "user_created"
    ROLE_CHANGED = "role_changed"
    RECORD_ARCHIVED = "record_archived"
    RECORD_RESTORED = "record_restored"
    RECORD_PERMANENTLY_DELETED = "record_permanently_deleted"
    DATABASE_BACKUP_DOWNLOADED = "database_backup_downloaded"
    SCHEDULE_UPDATED = "schedule_updated"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_COMPLETED = "appointment_completed"


# ============================================================================
# SHARED COLUMN SETS
# Live and archived tables share their columns so a row can move between
# the two partitions unchanged.
# ============================================================================

class TimestampColumns:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now())


class ArchiveColumns:
    archived_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    archived_by_id = Column(Uuid, nullable=True)
    # Set when the row was archived as part of deleting its owning patient
    archived_with_id = Column(Uuid, nullable=True, index=True)


class PatientColumns(TimestampColumns):
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.PATIENT)
    name = Column(String(160), nullable=False)
    first_name = Column(String(50), nullable=False)
    middle_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    phone_number = Column(String(30), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    sex = Column(String(10), nullable=True)
    civil_status = Column(String(50), nullable=True)
    religion = Column(String(100), nullable=True)
    ethnicity = Column(String(100), nullable=True)
    nationality = Column(String(100), nullable=True)
    highest_education = Column(String(100), nullable=True)
    occupation = Column(String(100), nullable=True)
    monthly_income = Column(String(50), nullable=True)
    philhealth_member = Column(String(3), nullable=True)
    philhealth_number = Column(String(50), nullable=True)
    health_facility_member = Column(String(3), nullable=True)
    household_member = Column(String(3), nullable=True)
    blood_type = Column(String(5), nullable=True)
    remarks = Column(Text, nullable=True)


class ConsultationColumns(TimestampColumns):
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid, nullable=False, index=True)
    doctor_id = Column(Uuid, nullable=True)
    appointment_id = Column(Uuid, nullable=True)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=False)
    diagnosis = Column(Text, nullable=True)
    treatment_plan = Column(Text, nullable=True)
    subject_type = Column(SAEnum(ConsultationSubject), nullable=False, default=ConsultationSubject.MOTHER)
    baby_id = Column(Uuid, nullable=True)


class MaternityColumns(TimestampColumns):
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid, nullable=False, index=True)
    pregnancy_number = Column(Integer, nullable=False)
    delivery_date = Column(Date, nullable=True)
    outcome = Column(Text, nullable=True)
    complications = Column(Text, nullable=True)


class BabyColumns(TimestampColumns):
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    mother_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(160), nullable=True)
    birth_date = Column(Date, nullable=False)
    birth_weight = Column(String(50), nullable=True)
    birth_length = Column(String(50), nullable=True)
    apgar_score = Column(String(20), nullable=True)
    vaccinations = Column(JSONType, nullable=False, default=list)  # [{date, vaccine, notes}]
    checkups = Column(JSONType, nullable=False, default=list)  # [{date, notes, weight, height}]


class BmiColumns(TimestampColumns):
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid, nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    weight_kg = Column(Float, nullable=False)
    height_m = Column(Float, nullable=False)
    bmi = Column(Float, nullable=False)  # weight_kg / height_m ** 2, two decimals
    recorded_by_id = Column(Uuid, nullable=True)
    recorded_by_name = Column(String(160), nullable=True)


# ============================================================================
# ACCOUNT / PATIENT MODELS
# ============================================================================

class Patient(PatientColumns, Base):
    """Every account lives here, providers and admins included; `role` tells them apart."""
    __tablename__ = "patients"
    __table_args__ = (Index("uq_patients_email", "email", unique=True),)

    def __repr__(self):
        return f"<Patient(id={self.id}, email={self.email}, role={self.role.value})>"


class ArchivedPatient(PatientColumns, ArchiveColumns, Base):
    __tablename__ = "archived_patients"
    __table_args__ = (Index("idx_archived_patients_email", "email"),)

    def __repr__(self):
        return f"<ArchivedPatient(id={self.id}, email={self.email})>"


# ============================================================================
# CLINICAL RECORD MODELS
# ============================================================================

class Consultation(ConsultationColumns, Base):
    __tablename__ = "consultations"

    def __repr__(self):
        return f"<Consultation(id={self.id}, patient_id={self.patient_id}, date={self.date})>"


class ArchivedConsultation(ConsultationColumns, ArchiveColumns, Base):
    __tablename__ = "archived_consultations"


class MaternityRecord(MaternityColumns, Base):
    __tablename__ = "maternity_records"

    def __repr__(self):
        return f"<MaternityRecord(id={self.id}, pregnancy_number={self.pregnancy_number})>"


class ArchivedMaternityRecord(MaternityColumns, ArchiveColumns, Base):
    __tablename__ = "archived_maternity_records"


class BabyRecord(BabyColumns, Base):
    __tablename__ = "baby_records"

    def __repr__(self):
        return f"<BabyRecord(id={self.id}, mother_id={self.mother_id})>"


class ArchivedBabyRecord(BabyColumns, ArchiveColumns, Base):
    __tablename__ = "archived_baby_records"


class BmiRecord(BmiColumns, Base):
    __tablename__ = "bmi_records"

    def __repr__(self):
        return f"<BmiRecord(id={self.id}, patient_id={self.patient_id}, bmi={self.bmi})>"


class ArchivedBmiRecord(BmiColumns, ArchiveColumns, Base):
    __tablename__ = "archived_bmi_records"


# ============================================================================
# APPOINTMENT MODELS
# ============================================================================

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    patient_id = Column(Uuid, nullable=False, index=True)
    doctor_id = Column(Uuid, nullable=False, index=True)
    appointment_start = Column(DateTime(timezone=True), nullable=False)
    appointment_end = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(SAEnum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    reason_for_visit = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by_role = Column(SAEnum(UserRole), nullable=True)
    cancelled_by_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now())

    __table_args__ = (
        Index("idx_appointments_doctor_start", "doctor_id", "appointment_start"),
        # A provider's time can be held by only one live booking
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_start",
            unique=True,
            postgresql_where=text("status IN ('SCHEDULED', 'COMPLETED')"),
            sqlite_where=text("status IN ('SCHEDULED', 'COMPLETED')"),
        ),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, start={self.appointment_start}, status={self.status.value})>"


class DoctorSchedule(Base):
    __tablename__ = "doctor_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    doctor_id = Column(Uuid, unique=True, nullable=False, index=True)
    # Seven entries, Sunday first: {day_of_week, is_enabled, start_time, end_time, break_times}
    working_hours = Column(JSONType, nullable=False)
    default_slot_duration_minutes = Column(Integer, nullable=False, default=30)
    notice_period_hours = Column(Integer, nullable=False, default=0)
    unavailable_dates = Column(JSONType, nullable=False, default=list)  # ["YYYY-MM-DD"]
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now())

    def __repr__(self):
        return f"<DoctorSchedule(doctor_id={self.doctor_id})>"


# ============================================================================
# AUDIT MODELS
# ============================================================================

class AuditLog(Base):
    """Append-only. Rows are never updated or deleted by the application."""
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    user_id = Column(Uuid, nullable=False)
    user_name = Column(String(160), nullable=False)
    user_role = Column(SAEnum(UserRole), nullable=False)
    action = Column(SAEnum(AuditAction), nullable=False)
    description = Column(Text, nullable=False)
    target_id = Column(String(64), nullable=True)
    target_type = Column(String(50), nullable=True)
    details = Column(JSONType, nullable=True)

    __table_args__ = (
        Index("idx_audit_logs_timestamp", "timestamp"),
        Index("idx_audit_logs_user", "user_id"),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action={self.action.value})>"
