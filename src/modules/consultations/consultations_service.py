# src/modules/consultations/consultations_service.py
"""Consultations service for business logic."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import commit_or_raise
from src.common.errors import NotFound, ValidationError
from src.common.realtime import change_feed
from src.common.utils.global_functions import apply_changes, require_patient, submitted_fields
from src.models.models import BabyRecord, Consultation, ConsultationSubject, UserRole
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import CLINICAL_FIELDS, Operation, RecordType, is_provider

from .schemas import ConsultationCreateRequest, ConsultationRespondRequest, ConsultationUpdateRequest


async def _check_baby(session: AsyncSession, baby_id: Optional[UUID], patient_id: UUID) -> None:
    """A baby consultation must point at one of the mother's own baby records."""
    baby = await session.get(BabyRecord, baby_id) if baby_id else None
    if baby is None or baby.mother_id != patient_id:
        raise ValidationError("The selected baby does not belong to this patient.", field="baby_id")


async def list_consultations(
    session: AsyncSession,
    context: PolicyContext,
    patient_id: UUID,
) -> List[Consultation]:
    """A patient's consultations, most recent first."""
    await require_patient(session, patient_id)
    ensure_access(context, RecordType.CONSULTATION, Consultation(patient_id=patient_id), Operation.READ)

    result = await session.execute(
        select(Consultation)
        .where(Consultation.patient_id == patient_id)
        .order_by(desc(Consultation.date), desc(Consultation.created_at))
    )
    return [
        consultation
        for consultation in result.scalars().all()
        if can_access(context, RecordType.CONSULTATION, consultation, Operation.READ)
    ]


async def require_consultation(session: AsyncSession, consultation_id: UUID) -> Consultation:
    consultation = await session.get(Consultation, consultation_id)
    if consultation is None:
        raise NotFound()
    return consultation


async def get_consultation(session: AsyncSession, context: PolicyContext, consultation_id: UUID) -> Consultation:
    consultation = await require_consultation(session, consultation_id)
    ensure_access(context, RecordType.CONSULTATION, consultation, Operation.READ)
    return consultation


async def create_consultation(
    session: AsyncSession,
    context: PolicyContext,
    patient_id: UUID,
    request: ConsultationCreateRequest,
) -> Consultation:
    await require_patient(session, patient_id)
    values = request.model_dump(exclude={"doctor_id"})
    sent = {key for key, value in values.items() if value is not None}
    ensure_access(context, RecordType.CONSULTATION, Consultation(patient_id=patient_id), Operation.CREATE, fields=sent)

    if request.subject_type == ConsultationSubject.BABY:
        await _check_baby(session, request.baby_id, patient_id)
    else:
        values["baby_id"] = None

    if is_provider(context.role):
        doctor_id = context.actor.id
    elif context.role == UserRole.ADMIN:
        doctor_id = request.doctor_id
    else:
        # Patient concern, waiting for a provider
        doctor_id = None

    consultation = Consultation(patient_id=patient_id, doctor_id=doctor_id, **values)
    session.add(consultation)
    await commit_or_raise(session)
    change_feed.publish("consultations")
    return consultation


async def update_consultation(
    session: AsyncSession,
    context: PolicyContext,
    consultation_id: UUID,
    request: ConsultationUpdateRequest,
) -> Consultation:
    consultation = await require_consultation(session, consultation_id)
    changes = submitted_fields(request)
    ensure_access(context, RecordType.CONSULTATION, consultation, Operation.UPDATE, fields=changes.keys())

    subject_type = changes.get("subject_type") or consultation.subject_type
    if subject_type == ConsultationSubject.BABY:
        await _check_baby(session, changes.get("baby_id", consultation.baby_id), consultation.patient_id)
    else:
        changes["baby_id"] = None

    apply_changes(consultation, changes)
    await commit_or_raise(session)
    change_feed.publish("consultations")
    return consultation


async def respond_to_consultation(
    session: AsyncSession,
    context: PolicyContext,
    consultation_id: UUID,
    request: ConsultationRespondRequest,
) -> Consultation:
    """Record the diagnosis and treatment plan; the responder becomes the attributed provider."""
    consultation = await require_consultation(session, consultation_id)
    ensure_access(context, RecordType.CONSULTATION, consultation, Operation.UPDATE, fields=CLINICAL_FIELDS)

    consultation.diagnosis = request.diagnosis
    consultation.treatment_plan = request.treatment_plan
    consultation.doctor_id = context.actor.id
    await commit_or_raise(session)
    change_feed.publish("consultations")
    return consultation
