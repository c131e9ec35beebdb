# src/policy/relationships.py
"""
Doctor-patient relationships.

A relationship exists as soon as one appointment pairs the two, whatever its
status. There is no expiry.
"""

from typing import FrozenSet, Set, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.models import Appointment


async def has_relationship(session: AsyncSession, doctor_id: UUID, patient_id: UUID) -> bool:
    """Query the store directly for at least one appointment pairing the two ids."""
    result = await session.execute(
        select(Appointment.id)
        .where(Appointment.doctor_id == doctor_id)
        .where(Appointment.patient_id == patient_id)
        .limit(1)
    )
    return result.first() is not None


class RelationshipIndex:
    """
    Snapshot of (doctor_id, patient_id) pairs.

    Built once per request or realtime snapshot and thrown away afterwards,
    so relationships created by new bookings are picked up on the next one.
    """

    def __init__(self, pairs: Set[Tuple[UUID, UUID]] = None):
        self._pairs: FrozenSet[Tuple[UUID, UUID]] = frozenset(pairs or ())

    @classmethod
    def empty(cls) -> "RelationshipIndex":
        return cls()

    @classmethod
    async def load(cls, session: AsyncSession, doctor_id: UUID) -> "RelationshipIndex":
        result = await session.execute(
            select(Appointment.patient_id)
            .where(Appointment.doctor_id == doctor_id)
            .distinct()
        )
        return cls({(doctor_id, patient_id) for patient_id in result.scalars().all()})

    def has_relationship(self, doctor_id: UUID, patient_id: UUID) -> bool:
        return (doctor_id, patient_id) in self._pairs

    def patient_ids_for(self, doctor_id: UUID) -> Set[UUID]:
        return {patient_id for d_id, patient_id in self._pairs if d_id == doctor_id}

    def __len__(self):
        return len(self._pairs)
