# src/modules/babies/babies_controller.py

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.modules.archive import archive_service
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import babies_service as service
from .schemas import (
    BabyRecordCreateRequest,
    BabyRecordListResponse,
    BabyRecordResponse,
    BabyRecordUpdateRequest,
)

router = APIRouter(tags=["Baby Records"])


@router.get("/patients/{mother_id}/baby-records", response_model=BabyRecordListResponse)
async def list_baby_records(
    mother_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    records = await service.list_baby_records(db, context, mother_id)
    return BabyRecordListResponse(
        records=[BabyRecordResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.post(
    "/patients/{mother_id}/baby-records",
    response_model=BabyRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_baby_record(
    mother_id: UUID,
    request: BabyRecordCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    return await service.create_baby_record(db, context, mother_id, request)


@router.put("/baby-records/{record_id}", response_model=BabyRecordResponse)
async def update_baby_record(
    record_id: UUID,
    request: BabyRecordUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    return await service.update_baby_record(db, context, record_id, request)


@router.delete("/baby-records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_baby_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Move a baby record to the archive."""
    await archive_service.archive_record(db, context, "babyRecords", record_id)
