# src/modules/maternity/maternity_service.py
"""
Maternity history.

Pregnancy numbers are chosen by the caller. Duplicates and gaps are accepted;
lists only suggest the next number.
"""

from typing import List, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import commit_or_raise
from src.common.errors import NotFound
from src.common.realtime import change_feed
from src.common.utils.global_functions import apply_changes, require_patient, submitted_fields
from src.models.models import MaternityRecord
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType

from .schemas import MaternityRecordCreateRequest, MaternityRecordUpdateRequest


def next_pregnancy_number(records: List[MaternityRecord]) -> int:
    return max((record.pregnancy_number for record in records), default=0) + 1


async def list_maternity_records(
    session: AsyncSession,
    context: PolicyContext,
    patient_id: UUID,
) -> Tuple[List[MaternityRecord], int]:
    """A patient's maternity records by pregnancy number, plus the suggested next number."""
    await require_patient(session, patient_id)
    ensure_access(context, RecordType.MATERNITY, MaternityRecord(patient_id=patient_id), Operation.READ)

    result = await session.execute(
        select(MaternityRecord)
        .where(MaternityRecord.patient_id == patient_id)
        .order_by(MaternityRecord.pregnancy_number, MaternityRecord.created_at)
    )
    records = [
        record
        for record in result.scalars().all()
        if can_access(context, RecordType.MATERNITY, record, Operation.READ)
    ]
    return records, next_pregnancy_number(records)


async def require_maternity_record(session: AsyncSession, record_id: UUID) -> MaternityRecord:
    record = await session.get(MaternityRecord, record_id)
    if record is None:
        raise NotFound()
    return record


async def create_maternity_record(
    session: AsyncSession,
    context: PolicyContext,
    patient_id: UUID,
    request: MaternityRecordCreateRequest,
) -> MaternityRecord:
    await require_patient(session, patient_id)
    values = request.model_dump()
    record = MaternityRecord(patient_id=patient_id, **values)
    ensure_access(context, RecordType.MATERNITY, record, Operation.CREATE, fields=values.keys())

    session.add(record)
    await commit_or_raise(session)
    change_feed.publish("maternityRecords")
    return record


async def update_maternity_record(
    session: AsyncSession,
    context: PolicyContext,
    record_id: UUID,
    request: MaternityRecordUpdateRequest,
) -> MaternityRecord:
    record = await require_maternity_record(session, record_id)
    changes = submitted_fields(request)
    ensure_access(context, RecordType.MATERNITY, record, Operation.UPDATE, fields=changes.keys())

    apply_changes(record, changes)
    await commit_or_raise(session)
    change_feed.publish("maternityRecords")
    return record
