# src/modules/schedules/schedules_service.py
"""Schedules service: provider templates and the bookable-slot views built on them."""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.config import settings
from src.common.database.database import commit_or_raise
from src.common.errors import NotFound, ValidationError
from src.common.realtime import change_feed
from src.common.utils.global_messages import GlobalMessages
from src.models.models import (
    ACTIVE_APPOINTMENT_STATUSES,
    Appointment,
    AuditAction,
    DoctorSchedule,
    Patient,
)
from src.modules.audit import audit_service
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import BOOKABLE_ROLES, SCHEDULE_ROLES, Operation, RecordType

from . import availability
from .availability import TimeSlot
from .schemas import ScheduleUpsertRequest


def clinic_timezone():
    return availability.get_timezone(settings.CLINIC_TIMEZONE)


async def get_schedule_holder(session: AsyncSession, doctor_id: UUID) -> Patient:
    """The account behind `doctor_id`, which must be a provider."""
    doctor = await session.get(Patient, doctor_id)
    if doctor is None:
        raise NotFound(GlobalMessages.USER_NOT_FOUND)
    if doctor.role not in SCHEDULE_ROLES:
        raise ValidationError("Only doctors and midwives/nurses can hold a schedule.", field="doctor_id")
    return doctor


async def get_bookable_provider(session: AsyncSession, doctor_id: UUID) -> Patient:
    doctor = await get_schedule_holder(session, doctor_id)
    if doctor.role not in BOOKABLE_ROLES:
        raise ValidationError("Appointments can only be booked with doctors.", field="doctor_id")
    return doctor


async def find_schedule(session: AsyncSession, doctor_id: UUID) -> Optional[DoctorSchedule]:
    result = await session.execute(
        select(DoctorSchedule).where(DoctorSchedule.doctor_id == doctor_id)
    )
    return result.scalar_one_or_none()


async def require_schedule(session: AsyncSession, doctor_id: UUID) -> DoctorSchedule:
    schedule = await find_schedule(session, doctor_id)
    if schedule is None:
        raise NotFound(GlobalMessages.SCHEDULE_NOT_FOUND)
    return schedule


async def load_active_appointments(
    session: AsyncSession,
    doctor_id: UUID,
    window_start: datetime,
    window_end: datetime,
) -> List[Appointment]:
    """Scheduled or completed appointments of the provider overlapping the window."""
    result = await session.execute(
        select(Appointment)
        .where(Appointment.doctor_id == doctor_id)
        .where(Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES))
        .where(Appointment.appointment_start < window_end.astimezone(timezone.utc))
        .where(Appointment.appointment_end > window_start.astimezone(timezone.utc))
        .order_by(Appointment.appointment_start)
    )
    return list(result.scalars().all())


async def list_schedules(session: AsyncSession, context: PolicyContext) -> List[DoctorSchedule]:
    result = await session.execute(select(DoctorSchedule).order_by(DoctorSchedule.created_at))
    return [
        schedule
        for schedule in result.scalars().all()
        if can_access(context, RecordType.SCHEDULE, schedule, Operation.READ)
    ]


async def get_schedule(session: AsyncSession, context: PolicyContext, doctor_id: UUID) -> DoctorSchedule:
    schedule = await require_schedule(session, doctor_id)
    ensure_access(context, RecordType.SCHEDULE, schedule, Operation.READ)
    return schedule


async def upsert_schedule(
    session: AsyncSession,
    context: PolicyContext,
    doctor_id: UUID,
    request: ScheduleUpsertRequest,
) -> DoctorSchedule:
    """Create the provider's schedule or replace it whole."""
    schedule = await find_schedule(session, doctor_id)
    ensure_access(
        context,
        RecordType.SCHEDULE,
        schedule or DoctorSchedule(doctor_id=doctor_id),
        Operation.UPDATE if schedule else Operation.CREATE,
    )
    doctor = await get_schedule_holder(session, doctor_id)

    values = dict(
        working_hours=[day.model_dump() for day in request.working_hours],
        default_slot_duration_minutes=request.default_slot_duration_minutes,
        notice_period_hours=request.notice_period_hours,
        unavailable_dates=sorted({d.isoformat() for d in request.unavailable_dates}),
    )
    created = schedule is None
    if created:
        schedule = DoctorSchedule(doctor_id=doctor_id, **values)
        session.add(schedule)
    else:
        for key, value in values.items():
            setattr(schedule, key, value)

    await commit_or_raise(session)
    change_feed.publish("doctorSchedules")

    await audit_service.record(
        context.actor,
        AuditAction.SCHEDULE_UPDATED,
        f"{'Created' if created else 'Updated'} schedule for {doctor.name}",
        target_id=doctor_id,
        target_type="doctorSchedule",
    )
    return schedule


async def get_available_slots(
    session: AsyncSession,
    doctor_id: UUID,
    day: date,
    now: Optional[datetime] = None,
) -> List[TimeSlot]:
    tz = clinic_timezone()
    schedule = await require_schedule(session, doctor_id)
    day_start, day_end = availability.local_day_bounds(day, tz)
    appointments = await load_active_appointments(session, doctor_id, day_start, day_end)
    return availability.compute_available_slots(
        schedule, day, appointments, now or datetime.now(timezone.utc), tz
    )


async def get_next_available_slot(
    session: AsyncSession,
    doctor_id: UUID,
    now: Optional[datetime] = None,
) -> Optional[TimeSlot]:
    tz = clinic_timezone()
    now = now or datetime.now(timezone.utc)
    schedule = await require_schedule(session, doctor_id)

    first_day = now.astimezone(tz).date()
    window_start, _ = availability.local_day_bounds(first_day, tz)
    _, window_end = availability.local_day_bounds(
        first_day + timedelta(days=settings.BOOKING_HORIZON_DAYS), tz
    )
    appointments = await load_active_appointments(session, doctor_id, window_start, window_end)
    return availability.find_next_available_slot(
        schedule, appointments, now, tz, horizon_days=settings.BOOKING_HORIZON_DAYS
    )
