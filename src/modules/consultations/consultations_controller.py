# src/modules/consultations/consultations_controller.py
"""Consultations controller with API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.modules.archive import archive_service
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import consultations_service as service
from .schemas import (
    ConsultationCreateRequest,
    ConsultationListResponse,
    ConsultationRespondRequest,
    ConsultationResponse,
    ConsultationUpdateRequest,
)

router = APIRouter(tags=["Consultations"])


@router.get("/patients/{patient_id}/consultations", response_model=ConsultationListResponse)
async def list_consultations(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """A patient's consultation records, most recent first."""
    consultations = await service.list_consultations(db, context, patient_id)
    return ConsultationListResponse(
        consultations=[ConsultationResponse.model_validate(c) for c in consultations],
        total=len(consultations),
    )


@router.post(
    "/patients/{patient_id}/consultations",
    response_model=ConsultationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_consultation(
    patient_id: UUID,
    request: ConsultationCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """
    Add a consultation record.

    Patients may submit a concern for themselves (notes only); it stays pending
    until a provider responds.
    """
    return await service.create_consultation(db, context, patient_id, request)


@router.get("/consultations/{consultation_id}", response_model=ConsultationResponse)
async def get_consultation(
    consultation_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    return await service.get_consultation(db, context, consultation_id)


@router.put("/consultations/{consultation_id}", response_model=ConsultationResponse)
async def update_consultation(
    consultation_id: UUID,
    request: ConsultationUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    return await service.update_consultation(db, context, consultation_id, request)


@router.put("/consultations/{consultation_id}/respond", response_model=ConsultationResponse)
async def respond_to_consultation(
    consultation_id: UUID,
    request: ConsultationRespondRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Answer a patient concern with a diagnosis and treatment plan."""
    return await service.respond_to_consultation(db, context, consultation_id, request)


@router.delete("/consultations/{consultation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_consultation(
    consultation_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Move a consultation record to the archive."""
    await archive_service.archive_record(db, context, "consultations", consultation_id)
