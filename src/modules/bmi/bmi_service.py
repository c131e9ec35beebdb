# src/modules/bmi/bmi_service.py
"""
BMI history.

Providers record weight and height; the BMI itself is always computed here,
never taken from the caller.
"""

from datetime import timezone
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import commit_or_raise
from src.common.realtime import change_feed
from src.common.utils.global_functions import require_patient
from src.models.models import BmiRecord, as_utc, utcnow
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType

from .schemas import BmiRecordCreateRequest


def compute_bmi(weight_kg: float, height_m: float) -> float:
    return round(weight_kg / (height_m * height_m), 2)


async def list_bmi_records(session: AsyncSession, context: PolicyContext, patient_id: UUID) -> List[BmiRecord]:
    """A patient's BMI measurements, oldest first."""
    await require_patient(session, patient_id)
    ensure_access(context, RecordType.BMI, BmiRecord(patient_id=patient_id), Operation.READ)

    result = await session.execute(
        select(BmiRecord)
        .where(BmiRecord.patient_id == patient_id)
        .order_by(BmiRecord.date, BmiRecord.created_at)
    )
    return [
        record
        for record in result.scalars().all()
        if can_access(context, RecordType.BMI, record, Operation.READ)
    ]


async def create_bmi_record(
    session: AsyncSession,
    context: PolicyContext,
    patient_id: UUID,
    request: BmiRecordCreateRequest,
) -> BmiRecord:
    await require_patient(session, patient_id)
    record = BmiRecord(
        patient_id=patient_id,
        date=as_utc(request.date).astimezone(timezone.utc) if request.date else utcnow(),
        weight_kg=request.weight_kg,
        height_m=request.height_m,
        bmi=compute_bmi(request.weight_kg, request.height_m),
        recorded_by_id=context.actor.id,
        recorded_by_name=context.actor.name,
    )
    ensure_access(context, RecordType.BMI, record, Operation.CREATE, fields=request.model_dump().keys())

    session.add(record)
    await commit_or_raise(session)
    change_feed.publish("bmiRecords")
    return record
