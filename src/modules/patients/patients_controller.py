# src/modules/patients/patients_controller.py
"""Patients controller with API routes."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.models.models import UserRole
from src.modules.archive import archive_service
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import patients_service as service
from .schemas import PatientListResponse, PatientResponse, PatientUpdateRequest

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("", response_model=PatientListResponse)
async def list_patients(
    role: Optional[UserRole] = Query(None, description="Only accounts with this role"),
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """
    Accounts visible to the caller.

    Admins see every account, providers their related patients, patients themselves.
    """
    patients = await service.list_patients(db, context, role)
    return PatientListResponse(
        patients=[PatientResponse.model_validate(p) for p in patients],
        total=len(patients),
    )


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Get a single profile by ID."""
    return await service.get_patient(db, context, patient_id)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: UUID,
    request: PatientUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Update demographic details. Only the fields sent are changed."""
    return await service.update_patient(db, context, patient_id, request)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Archive a patient together with their consultations, maternity and baby records."""
    await archive_service.archive_record(db, context, "patients", patient_id)
