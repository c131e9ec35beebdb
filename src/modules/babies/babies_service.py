# src/modules/babies/babies_service.py
"""Baby health records, owned by the mother's patient account."""

from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import commit_or_raise
from src.common.errors import NotFound
from src.common.realtime import change_feed
from src.common.utils.global_functions import apply_changes, require_patient, submitted_fields
from src.models.models import BabyRecord
from src.policy.context import PolicyContext
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType

from .schemas import BabyRecordCreateRequest, BabyRecordUpdateRequest

JSON_FIELDS = ("vaccinations", "checkups")


def _storable(request, values: Dict[str, Any]) -> Dict[str, Any]:
    # vaccination and checkup entries are stored as JSON, dates as ISO strings
    encoded = request.model_dump(mode="json", include=set(JSON_FIELDS))
    for field in JSON_FIELDS:
        if field in values and values[field] is not None:
            values[field] = encoded[field]
    return values


async def list_baby_records(
    session: AsyncSession,
    context: PolicyContext,
    mother_id: UUID,
) -> List[BabyRecord]:
    await require_patient(session, mother_id)
    ensure_access(context, RecordType.BABY, BabyRecord(mother_id=mother_id), Operation.READ)

    result = await session.execute(
        select(BabyRecord)
        .where(BabyRecord.mother_id == mother_id)
        .order_by(BabyRecord.birth_date, BabyRecord.created_at)
    )
    return [
        record
        for record in result.scalars().all()
        if can_access(context, RecordType.BABY, record, Operation.READ)
    ]


async def require_baby_record(session: AsyncSession, record_id: UUID) -> BabyRecord:
    record = await session.get(BabyRecord, record_id)
    if record is None:
        raise NotFound()
    return record


async def create_baby_record(
    session: AsyncSession,
    context: PolicyContext,
    mother_id: UUID,
    request: BabyRecordCreateRequest,
) -> BabyRecord:
    await require_patient(session, mother_id)
    values = _storable(request, request.model_dump())
    record = BabyRecord(mother_id=mother_id, **values)
    ensure_access(context, RecordType.BABY, record, Operation.CREATE, fields=values.keys())

    session.add(record)
    await commit_or_raise(session)
    change_feed.publish("babyRecords")
    return record


async def update_baby_record(
    session: AsyncSession,
    context: PolicyContext,
    record_id: UUID,
    request: BabyRecordUpdateRequest,
) -> BabyRecord:
    """Replace the submitted fields. Vaccination and checkup lists are replaced whole."""
    record = await require_baby_record(session, record_id)
    changes = _storable(request, submitted_fields(request))
    ensure_access(context, RecordType.BABY, record, Operation.UPDATE, fields=changes.keys())

    apply_changes(record, changes)
    await commit_or_raise(session)
    change_feed.publish("babyRecords")
    return record
