# src/modules/appointments/appointments_service.py
"""Appointments service for business logic."""

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import commit_or_raise
from src.common.errors import NotFound, SlotConflict, StoreError, ValidationError
from src.common.realtime import change_feed
from src.common.utils.global_messages import GlobalMessages
from src.models.models import (
    TERMINAL_APPOINTMENT_STATUSES,
    Appointment,
    AppointmentStatus,
    AuditAction,
    Consultation,
    ConsultationSubject,
    Patient,
    UserRole,
    as_utc,
)
from src.modules.audit import audit_service
from src.modules.schedules import availability
from src.modules.schedules.schedules_service import (
    clinic_timezone,
    get_bookable_provider,
    load_active_appointments,
    require_schedule,
)
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType

from .schemas import (
    AppointmentCancelRequest,
    AppointmentCompleteRequest,
    AppointmentCreateRequest,
    AppointmentResponse,
)

logger = logging.getLogger(__name__)

# One booking at a time per provider within this process
_booking_locks: Dict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

_CANCELLED_STATUS_BY_ROLE = {
    UserRole.PATIENT: AppointmentStatus.CANCELLED_BY_PATIENT,
    UserRole.DOCTOR: AppointmentStatus.CANCELLED_BY_DOCTOR,
    UserRole.MIDWIFE_NURSE: AppointmentStatus.CANCELLED_BY_DOCTOR,
    UserRole.ADMIN: AppointmentStatus.CANCELLED_BY_ADMIN,
}


async def _names_by_id(session: AsyncSession, ids: Iterable[UUID]) -> Dict[UUID, str]:
    ids = set(ids)
    if not ids:
        return {}
    result = await session.execute(select(Patient.id, Patient.name).where(Patient.id.in_(ids)))
    return {row.id: row.name for row in result.all()}


def _build_appointment_response(appointment: Appointment, names: Dict[UUID, str]) -> AppointmentResponse:
    """Build appointment response with patient and doctor names."""
    return AppointmentResponse(
        id=appointment.id,
        patient_id=appointment.patient_id,
        patient_name=names.get(appointment.patient_id, "Unknown"),
        doctor_id=appointment.doctor_id,
        doctor_name=names.get(appointment.doctor_id, "Unknown"),
        appointment_start=as_utc(appointment.appointment_start),
        appointment_end=as_utc(appointment.appointment_end),
        duration_minutes=appointment.duration_minutes,
        status=appointment.status,
        reason_for_visit=appointment.reason_for_visit,
        notes=appointment.notes,
        cancellation_reason=appointment.cancellation_reason,
        cancelled_by_role=appointment.cancelled_by_role,
        cancelled_by_id=appointment.cancelled_by_id,
        created_at=as_utc(appointment.created_at),
    )


async def build_responses(session: AsyncSession, appointments: List[Appointment]) -> List[AppointmentResponse]:
    names = await _names_by_id(
        session,
        [a.patient_id for a in appointments] + [a.doctor_id for a in appointments],
    )
    return [_build_appointment_response(appointment, names) for appointment in appointments]


async def build_response(session: AsyncSession, appointment: Appointment) -> AppointmentResponse:
    return (await build_responses(session, [appointment]))[0]


def parse_status_filter(value: Optional[str]) -> Optional[AppointmentStatus]:
    if not value or value == "all":
        return None
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown appointment status: {value}", field="status")


async def list_appointments(
    session: AsyncSession,
    context: PolicyContext,
    status: Optional[AppointmentStatus] = None,
) -> List[Appointment]:
    """Appointments visible to the caller, newest first."""
    query = select(Appointment)
    if context.role == UserRole.PATIENT:
        query = query.where(Appointment.patient_id == context.actor.id)
    elif context.role != UserRole.ADMIN:
        query = query.where(Appointment.doctor_id == context.actor.id)
    if status is not None:
        query = query.where(Appointment.status == status)

    result = await session.execute(query.order_by(desc(Appointment.appointment_start)))
    return [
        appointment
        for appointment in result.scalars().all()
        if can_access(context, RecordType.APPOINTMENT, appointment, Operation.READ)
    ]


async def require_appointment(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appointment = await session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound(GlobalMessages.APPOINTMENT_NOT_FOUND)
    return appointment


async def get_appointment(session: AsyncSession, context: PolicyContext, appointment_id: UUID) -> Appointment:
    appointment = await require_appointment(session, appointment_id)
    ensure_access(context, RecordType.APPOINTMENT, appointment, Operation.READ)
    return appointment


async def _require_patient_account(session: AsyncSession, patient_id: UUID) -> Patient:
    patient = await session.get(Patient, patient_id)
    if patient is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)
    if patient.role != UserRole.PATIENT:
        raise ValidationError("Appointments can only be booked for patients.", field="patient_id")
    return patient


async def book_appointment(
    session: AsyncSession,
    context: PolicyContext,
    request: AppointmentCreateRequest,
    now: Optional[datetime] = None,
) -> Appointment:
    """
    Book one of the doctor's slots.

    The slot is re-validated against the store right before the insert while
    holding the doctor's booking lock. The partial unique index on active
    appointments catches races with other processes.
    """
    patient_id = request.patient_id or context.actor.id
    ensure_access(
        context,
        RecordType.APPOINTMENT,
        Appointment(patient_id=patient_id, doctor_id=request.doctor_id),
        Operation.CREATE,
    )

    await _require_patient_account(session, patient_id)
    await get_bookable_provider(session, request.doctor_id)
    schedule = await require_schedule(session, request.doctor_id)

    tz = clinic_timezone()
    start = request.start if request.start.tzinfo else tz.localize(request.start)
    day = start.astimezone(tz).date()

    async with _booking_locks[request.doctor_id]:
        offered = {slot.start: slot for slot in availability.candidate_slots(schedule, day, tz)}
        slot = offered.get(start)
        if slot is None:
            raise ValidationError(GlobalMessages.SLOT_NOT_OFFERED, field="start")

        now = now or datetime.now(timezone.utc)
        day_start, day_end = availability.local_day_bounds(day, tz)
        existing = await load_active_appointments(session, request.doctor_id, day_start, day_end)
        bookable = availability.compute_available_slots(schedule, day, existing, now, tz)
        if slot not in bookable:
            raise SlotConflict()

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=request.doctor_id,
            appointment_start=slot.start.astimezone(timezone.utc),
            appointment_end=slot.end.astimezone(timezone.utc),
            duration_minutes=slot.duration_minutes,
            status=AppointmentStatus.SCHEDULED,
            reason_for_visit=request.reason_for_visit,
        )
        session.add(appointment)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.info("Lost booking race for doctor %s at %s", request.doctor_id, slot.start)
            raise SlotConflict() from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Store write failed while booking: %s", e)
            raise StoreError() from e

    change_feed.publish("appointments")
    return appointment


def _ensure_open(appointment: Appointment) -> None:
    if appointment.status in TERMINAL_APPOINTMENT_STATUSES:
        raise ValidationError(GlobalMessages.APPOINTMENT_FINISHED, field="status")


async def cancel_appointment(
    session: AsyncSession,
    context: PolicyContext,
    appointment_id: UUID,
    request: Optional[AppointmentCancelRequest] = None,
) -> Appointment:
    """Cancel an appointment. The new status records which side cancelled."""
    appointment = await require_appointment(session, appointment_id)
    ensure_access(context, RecordType.APPOINTMENT, appointment, Operation.CANCEL)
    _ensure_open(appointment)

    appointment.status = _CANCELLED_STATUS_BY_ROLE[context.role]
    appointment.cancellation_reason = request.cancellation_reason if request else None
    appointment.cancelled_by_role = context.role
    appointment.cancelled_by_id = context.actor.id
    await commit_or_raise(session)
    change_feed.publish("appointments")

    await audit_service.record(
        context.actor,
        AuditAction.APPOINTMENT_CANCELLED,
        f"Cancelled appointment on {as_utc(appointment.appointment_start).isoformat()}",
        target_id=appointment.id,
        target_type="appointment",
        details={"status": appointment.status.value, "reason": appointment.cancellation_reason},
    )
    return appointment


async def complete_appointment(
    session: AsyncSession,
    context: PolicyContext,
    appointment_id: UUID,
    request: AppointmentCompleteRequest,
) -> Consultation:
    """Mark the appointment completed and record its consultation in the same commit."""
    appointment = await require_appointment(session, appointment_id)
    ensure_access(context, RecordType.APPOINTMENT, appointment, Operation.UPDATE)
    _ensure_open(appointment)

    visit_day = as_utc(appointment.appointment_start).astimezone(clinic_timezone()).date()
    notes = request.notes or f"Consultation for appointment. Reason for visit: {appointment.reason_for_visit or 'not stated'}"
    consultation = Consultation(
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        appointment_id=appointment.id,
        date=visit_day,
        notes=notes,
        diagnosis=request.diagnosis,
        treatment_plan=request.treatment_plan,
        subject_type=ConsultationSubject.MOTHER,
    )
    appointment.status = AppointmentStatus.COMPLETED
    session.add(consultation)
    await commit_or_raise(session)
    change_feed.publish("appointments")
    change_feed.publish("consultations")

    await audit_service.record(
        context.actor,
        AuditAction.APPOINTMENT_COMPLETED,
        f"Completed appointment on {as_utc(appointment.appointment_start).isoformat()}",
        target_id=appointment.id,
        target_type="appointment",
        details={"consultation_id": consultation.id},
    )
    return consultation
