# src/modules/appointments/appointments_controller.py
"""Appointments controller with API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import appointments_service as service
from .schemas import (
    AppointmentCancelRequest,
    AppointmentCompleteRequest,
    AppointmentCompleteResponse,
    AppointmentCreateRequest,
    AppointmentListResponse,
    AppointmentResponse,
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("", response_model=AppointmentListResponse)
async def get_appointments(
    status: Optional[str] = Query(None, description="Filter by status, e.g. scheduled, completed, cancelledByPatient"),
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Appointments visible to the caller with optional status filter."""
    appointments = await service.list_appointments(db, context, service.parse_status_filter(status))
    responses = await service.build_responses(db, appointments)
    return AppointmentListResponse(appointments=responses, total=len(responses))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Get a single appointment by ID."""
    appointment = await service.get_appointment(db, context, appointment_id)
    return await service.build_response(db, appointment)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    request: AppointmentCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Book an appointment in one of the doctor's available slots."""
    appointment = await service.book_appointment(db, context, request)
    return await service.build_response(db, appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    request: Optional[AppointmentCancelRequest] = None,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Cancel an appointment."""
    appointment = await service.cancel_appointment(db, context, appointment_id, request)
    return await service.build_response(db, appointment)


@router.post("/{appointment_id}/complete", response_model=AppointmentCompleteResponse)
async def complete_appointment(
    appointment_id: UUID,
    request: Optional[AppointmentCompleteRequest] = None,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Mark an appointment completed and record its consultation."""
    consultation = await service.complete_appointment(
        db, context, appointment_id, request or AppointmentCompleteRequest()
    )
    appointment = await service.require_appointment(db, appointment_id)
    return AppointmentCompleteResponse(
        appointment=await service.build_response(db, appointment),
        consultation_id=consultation.id,
    )
