# src/modules/bmi/bmi_controller.py

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import get_db_session
from src.modules.archive import archive_service
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import bmi_service as service
from .schemas import BmiRecordCreateRequest, BmiRecordListResponse, BmiRecordResponse

router = APIRouter(tags=["BMI"])


@router.get("/patients/{patient_id}/bmi-records", response_model=BmiRecordListResponse)
async def list_bmi_records(
    patient_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    records = await service.list_bmi_records(db, context, patient_id)
    return BmiRecordListResponse(
        records=[BmiRecordResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.post(
    "/patients/{patient_id}/bmi-records",
    response_model=BmiRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_bmi_record(
    patient_id: UUID,
    request: BmiRecordCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Record a weight and height; the BMI is computed from them."""
    return await service.create_bmi_record(db, context, patient_id, request)


@router.delete("/bmi-records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bmi_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    await archive_service.archive_record(db, context, "bmiRecords", record_id)
