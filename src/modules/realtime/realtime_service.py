# src/modules/realtime/realtime_service.py
"""
Live collection views for websocket clients.

Each snapshot is rebuilt from the store and filtered through the resolver
with the actor reloaded, so a role change narrows an open stream on the next
change of its collection.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from src.common.config import settings
from src.common.database.database import async_session
from src.common.realtime import StoreQuery, row_to_dict, run_query
from src.models.models import Patient, UserRole
from src.policy.dependencies import build_policy_context
from src.policy.resolver import can_access
from src.policy.roles import Operation, RecordType

logger = logging.getLogger(__name__)


# collection -> (record type, operation a viewer needs, owner column, order field)
STREAMS: Dict[str, Tuple[RecordType, Operation, Optional[str], str]] = {
    "patients": (RecordType.PROFILE, Operation.READ, "id", "created_at"),
    "consultations": (RecordType.CONSULTATION, Operation.READ, "patient_id", "date"),
    "maternityRecords": (RecordType.MATERNITY, Operation.READ, "patient_id", "pregnancy_number"),
    "babyRecords": (RecordType.BABY, Operation.READ, "mother_id", "birth_date"),
    "bmiRecords": (RecordType.BMI, Operation.READ, "patient_id", "date"),
    "appointments": (RecordType.APPOINTMENT, Operation.READ, "patient_id", "appointment_start"),
    "doctorSchedules": (RecordType.SCHEDULE, Operation.READ, None, "created_at"),
    "auditLogs": (RecordType.AUDIT_LOG, Operation.READ, None, "timestamp"),
    # Archived rows are visible to whoever may restore them
    "archivedPatients": (RecordType.PROFILE, Operation.RESTORE, "id", "archived_at"),
    "archivedConsultations": (RecordType.CONSULTATION, Operation.RESTORE, "patient_id", "archived_at"),
    "archivedMaternityRecords": (RecordType.MATERNITY, Operation.RESTORE, "patient_id", "archived_at"),
    "archivedBabyRecords": (RecordType.BABY, Operation.RESTORE, "mother_id", "archived_at"),
    "archivedBmiRecords": (RecordType.BMI, Operation.RESTORE, "patient_id", "archived_at"),
}


def build_stream_query(collection: str, patient_id: Optional[UUID] = None) -> StoreQuery:
    """Query for a stream, optionally narrowed to one patient's records."""
    if collection not in STREAMS:
        raise ValueError(f"Unknown collection: {collection}")
    _, _, owner_column, order_field = STREAMS[collection]

    equals = {}
    if patient_id is not None:
        if owner_column is None:
            raise ValueError(f"{collection} cannot be filtered by patient")
        equals[owner_column] = patient_id

    limit = settings.AUDIT_LOG_DEFAULT_LIMIT if collection == "auditLogs" else None
    return StoreQuery(collection, equals=equals, order_by=order_field, limit_to_last=limit)


def snapshot_loader(actor_id: UUID):
    """Loader for `ChangeFeed.subscribe` that yields the rows `actor_id` may see."""

    async def load(query: StoreQuery) -> List[Dict[str, Any]]:
        record_type, operation, _, _ = STREAMS[query.collection]
        async with async_session() as session:
            actor = await session.get(Patient, actor_id)
            if actor is None:
                return []
            context = await build_policy_context(session, actor)
            if query.collection == "auditLogs" and actor.role != UserRole.ADMIN:
                # Limit applies to the actor's own entries only
                query = StoreQuery(
                    query.collection,
                    equals={**query.equals, "user_id": actor.id},
                    order_by=query.order_by,
                    limit_to_last=query.limit_to_last,
                )
            rows = await run_query(session, query)
            return [
                row_to_dict(row)
                for row in rows
                if can_access(context, record_type, row, operation)
            ]

    return load
