# src/modules/patients/patients_service.py
"""Patients service: accounts and their demographic profiles."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.auth_service import compose_name
from src.common.database.database import commit_or_raise
from src.common.errors import NotFound
from src.common.realtime import change_feed
from src.common.utils.global_functions import apply_changes, submitted_fields
from src.common.utils.global_messages import GlobalMessages
from src.models.models import Patient, UserRole
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType, is_provider

from .schemas import PatientUpdateRequest


async def list_patients(
    session: AsyncSession,
    context: PolicyContext,
    role: Optional[UserRole] = None,
) -> List[Patient]:
    """Accounts visible to the caller, by last name."""
    query = select(Patient)
    if is_provider(context.role):
        query = query.where(Patient.id.in_(context.relationships.patient_ids_for(context.actor.id)))
    elif context.role != UserRole.ADMIN:
        query = query.where(Patient.id == context.actor.id)
    if role is not None:
        query = query.where(Patient.role == role)

    result = await session.execute(query.order_by(Patient.last_name, Patient.first_name))
    return [
        patient
        for patient in result.scalars().all()
        if can_access(context, RecordType.PROFILE, patient, Operation.READ)
    ]


async def require_account(session: AsyncSession, patient_id: UUID) -> Patient:
    patient = await session.get(Patient, patient_id)
    if patient is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)
    return patient


async def get_patient(session: AsyncSession, context: PolicyContext, patient_id: UUID) -> Patient:
    patient = await require_account(session, patient_id)
    ensure_access(context, RecordType.PROFILE, patient, Operation.READ)
    return patient


async def update_patient(
    session: AsyncSession,
    context: PolicyContext,
    patient_id: UUID,
    request: PatientUpdateRequest,
) -> Patient:
    patient = await require_account(session, patient_id)
    changes = submitted_fields(request)
    ensure_access(context, RecordType.PROFILE, patient, Operation.UPDATE, fields=changes.keys())

    apply_changes(patient, changes)
    if changes.keys() & {"first_name", "middle_name", "last_name"}:
        patient.name = compose_name(patient.first_name, patient.middle_name, patient.last_name)

    await commit_or_raise(session)
    change_feed.publish("patients")
    return patient
