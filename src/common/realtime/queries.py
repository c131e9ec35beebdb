# src/common/realtime/queries.py

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.models import (
    Appointment,
    ArchivedBabyRecord,
    ArchivedBmiRecord,
    ArchivedConsultation,
    ArchivedMaternityRecord,
    ArchivedPatient,
    AuditLog,
    BabyRecord,
    BmiRecord,
    Consultation,
    DoctorSchedule,
    MaternityRecord,
    Patient,
)

# Collection name -> model, using the names clients subscribe with
COLLECTIONS = {
    "patients": Patient,
    "consultations": Consultation,
    "maternityRecords": MaternityRecord,
    "babyRecords": BabyRecord,
    "bmiRecords": BmiRecord,
    "appointments": Appointment,
    "doctorSchedules": DoctorSchedule,
    "auditLogs": AuditLog,
    "archivedPatients": ArchivedPatient,
    "archivedConsultations": ArchivedConsultation,
    "archivedMaternityRecords": ArchivedMaternityRecord,
    "archivedBabyRecords": ArchivedBabyRecord,
    "archivedBmiRecords": ArchivedBmiRecord,
}

# Never leaves the server, not even in a backup
CREDENTIAL_COLUMNS = frozenset({"password_hash"})


@dataclass(frozen=True)
class StoreQuery:
    """Equality filters, one ordering field and an optional limit-to-last."""
    collection: str
    equals: Dict[str, Any] = field(default_factory=dict)
    order_by: Optional[str] = None
    limit_to_last: Optional[int] = None

    def __post_init__(self):
        if self.collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {self.collection}")
        if self.limit_to_last is not None and self.order_by is None:
            raise ValueError("limit_to_last needs an order_by field")

    @property
    def model(self):
        return COLLECTIONS[self.collection]


async def run_query(session: AsyncSession, query: StoreQuery) -> List[Any]:
    """
    Run `query` and return rows in ascending `order_by` order.

    With `limit_to_last` only the last N rows of that ordering are returned,
    still ascending.
    """
    model = query.model
    stmt = select(model)
    for column, value in query.equals.items():
        stmt = stmt.where(getattr(model, column) == value)

    if query.order_by is None:
        result = await session.execute(stmt)
        return list(result.scalars().all())

    order_column = getattr(model, query.order_by)
    if query.limit_to_last is not None:
        stmt = stmt.order_by(order_column.desc()).limit(query.limit_to_last)
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))

    result = await session.execute(stmt.order_by(order_column.asc()))
    return list(result.scalars().all())


def row_to_dict(row: Any, exclude: Iterable[str] = CREDENTIAL_COLUMNS) -> Dict[str, Any]:
    """JSON-ready dict of a row's columns."""
    excluded = frozenset(exclude)
    data = {
        attr.key: getattr(row, attr.key)
        for attr in inspect(row).mapper.column_attrs
        if attr.key not in excluded
    }
    return jsonable_encoder(data)
