# src/modules/maternity/maternity_controller.py

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.modules.archive import archive_service
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import maternity_service as service
from .schemas import (
    MaternityRecordCreateRequest,
    MaternityRecordListResponse,
    MaternityRecordResponse,
    MaternityRecordUpdateRequest,
)

router = APIRouter(tags=["Maternity"])


@router.get("/patients/{patient_id}/maternity-records", response_model=MaternityRecordListResponse)
async def list_maternity_records(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    records, next_number = await service.list_maternity_records(db, context, patient_id)
    return MaternityRecordListResponse(
        records=[MaternityRecordResponse.model_validate(r) for r in records],
        total=len(records),
        next_pregnancy_number=next_number,
    )


@router.post(
    "/patients/{patient_id}/maternity-records",
    response_model=MaternityRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_maternity_record(
    patient_id: UUID,
    request: MaternityRecordCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    return await service.create_maternity_record(db, context, patient_id, request)


@router.put("/maternity-records/{record_id}", response_model=MaternityRecordResponse)
async def update_maternity_record(
    record_id: UUID,
    request: MaternityRecordUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    return await service.update_maternity_record(db, context, record_id, request)


@router.delete("/maternity-records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maternity_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    await archive_service.archive_record(db, context, "maternityRecords", record_id)
