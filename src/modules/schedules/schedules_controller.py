# src/modules/schedules/schedules_controller.py
"""Schedules controller with API routes."""

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.config import settings
from src.common.database.database import get_db_session
from src.models.models import Patient
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import schedules_service as service
from .schemas import (
    NextSlotResponse,
    ScheduleResponse,
    ScheduleUpsertRequest,
    SlotListResponse,
    SlotResponse,
)

router = APIRouter(prefix="/schedules", tags=["Schedules"])


@router.get("", response_model=List[ScheduleResponse])
async def list_schedules(
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """All provider schedules visible to the caller."""
    return await service.list_schedules(db, context)


@router.get("/{doctor_id}", response_model=ScheduleResponse)
async def get_schedule(
    doctor_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """A provider's schedule. Admins, or the provider themself."""
    return await service.get_schedule(db, context, doctor_id)


@router.put("/{doctor_id}", response_model=ScheduleResponse)
async def upsert_schedule(
    doctor_id: UUID,
    request: ScheduleUpsertRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Create or replace a provider's weekly schedule."""
    return await service.upsert_schedule(db, context, doctor_id, request)


@router.get("/{doctor_id}/slots", response_model=SlotListResponse)
async def get_available_slots(
    doctor_id: UUID,
    day: date = Query(..., alias="date", description="Clinic-local date, YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db_session),
    current_user: Patient = Depends(get_current_user),
):
    """Bookable slots on one day."""
    slots = await service.get_available_slots(db, doctor_id, day)
    return SlotListResponse(
        doctor_id=doctor_id,
        day=day,
        timezone=settings.CLINIC_TIMEZONE,
        slots=[SlotResponse(start=slot.start, end=slot.end) for slot in slots],
    )


@router.get("/{doctor_id}/next-slot", response_model=NextSlotResponse)
async def get_next_available_slot(
    doctor_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: Patient = Depends(get_current_user),
):
    """The earliest bookable slot within the booking horizon, if any."""
    slot = await service.get_next_available_slot(db, doctor_id)
    return NextSlotResponse(
        doctor_id=doctor_id,
        timezone=settings.CLINIC_TIMEZONE,
        slot=SlotResponse(start=slot.start, end=slot.end) if slot else None,
    )
