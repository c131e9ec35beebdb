# src/modules/archive/archive_service.py
"""
Archive service.

Deleting a record moves its row from the live table to the matching archived
table, untouched apart from the archive bookkeeping columns. Restoring moves
it back. Permanent delete removes the archived row for good.

Deleting a patient also archives the consultation, maternity, baby and BMI
records they own; those rows carry `archived_with_id` so restoring the
patient brings them back together.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Type
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.auth_service import reauthenticate
from src.common.database.database import commit_or_raise
from src.common.errors import NotFound, ValidationError
from src.common.realtime import change_feed
from src.common.utils.global_functions import column_values
from src.common.utils.global_messages import GlobalMessages
from src.models.models import (
    Appointment,
    ArchivedBabyRecord,
    ArchivedBmiRecord,
    ArchivedConsultation,
    ArchivedMaternityRecord,
    ArchivedPatient,
    AuditAction,
    BabyRecord,
    Base,
    BmiRecord,
    Consultation,
    MaternityRecord,
    Patient,
    UserRole,
)
from src.modules.audit import audit_service
from src.policy.context import PolicyContext
from src.policy.resolver import ensure_access
from src.policy.roles import Operation, RecordType

logger = logging.getLogger(__name__)

ARCHIVE_COLUMNS = ("archived_at", "archived_by_id", "archived_with_id")


@dataclass(frozen=True)
class ArchivePartition:
    """A live table and its archived mirror."""
    collection: str
    archived_collection: str
    live: Type[Base]
    archived: Type[Base]
    record_type: RecordType
    owner_column: Optional[str]
    label: str


PARTITIONS = {
    "patients": ArchivePartition(
        "patients", "archivedPatients", Patient, ArchivedPatient,
        RecordType.PROFILE, None, "patient",
    ),
    "consultations": ArchivePartition(
        "consultations", "archivedConsultations", Consultation, ArchivedConsultation,
        RecordType.CONSULTATION, "patient_id", "consultation",
    ),
    "maternityRecords": ArchivePartition(
        "maternityRecords", "archivedMaternityRecords", MaternityRecord, ArchivedMaternityRecord,
        RecordType.MATERNITY, "patient_id", "maternity record",
    ),
    "babyRecords": ArchivePartition(
        "babyRecords", "archivedBabyRecords", BabyRecord, ArchivedBabyRecord,
        RecordType.BABY, "mother_id", "baby record",
    ),
    "bmiRecords": ArchivePartition(
        "bmiRecords", "archivedBmiRecords", BmiRecord, ArchivedBmiRecord,
        RecordType.BMI, "patient_id", "BMI record",
    ),
}

CHILD_PARTITIONS = [
    PARTITIONS["consultations"],
    PARTITIONS["maternityRecords"],
    PARTITIONS["babyRecords"],
    PARTITIONS["bmiRecords"],
]


def get_partition(collection: str) -> ArchivePartition:
    partition = PARTITIONS.get(collection)
    if partition is None:
        raise NotFound(f"Unknown archive collection: {collection}")
    return partition


def _to_archive(partition: ArchivePartition, row, actor_id: UUID, archived_with_id: Optional[UUID] = None):
    return partition.archived(
        **column_values(row),
        archived_by_id=actor_id,
        archived_with_id=archived_with_id,
    )


def _to_live(partition: ArchivePartition, row):
    return partition.live(**column_values(row, exclude=ARCHIVE_COLUMNS))


async def _rows_owned_by(session: AsyncSession, model, owner_column: str, owner_id: UUID) -> list:
    result = await session.execute(select(model).where(getattr(model, owner_column) == owner_id))
    return list(result.scalars().all())


async def _owner_exists(session: AsyncSession, owner_id: UUID) -> bool:
    if await session.get(Patient, owner_id) is not None:
        return True
    return await session.get(ArchivedPatient, owner_id) is not None


def _publish(*partitions: ArchivePartition) -> None:
    for partition in partitions:
        change_feed.publish(partition.collection)
        change_feed.publish(partition.archived_collection)


# ============================================================================
# ARCHIVE
# ============================================================================

async def archive_record(
    session: AsyncSession,
    context: PolicyContext,
    collection: str,
    record_id: UUID,
) -> None:
    """Move a live record into the archive. Patients take their records with them."""
    partition = get_partition(collection)
    row = await session.get(partition.live, record_id)
    if row is None:
        raise NotFound()
    ensure_access(context, partition.record_type, row, Operation.DELETE)

    details = {"collection": partition.collection}
    touched = [partition]
    if partition.live is Patient:
        if row.role == UserRole.ADMIN:
            raise ValidationError(GlobalMessages.ADMIN_IMMUTABLE, field="id")
        for child in CHILD_PARTITIONS:
            children = await _rows_owned_by(session, child.live, child.owner_column, row.id)
            for child_row in children:
                session.add(_to_archive(child, child_row, context.actor.id, archived_with_id=row.id))
                await session.delete(child_row)
            details[child.collection] = len(children)
            touched.append(child)

    description = f"Archived {partition.label} {getattr(row, 'name', None) or row.id}"
    session.add(_to_archive(partition, row, context.actor.id))
    await session.delete(row)
    await commit_or_raise(session)
    _publish(*touched)

    await audit_service.record(
        context.actor,
        AuditAction.RECORD_ARCHIVED,
        description,
        target_id=record_id,
        target_type=partition.collection,
        details=details,
    )


# ============================================================================
# LIST / RESTORE
# ============================================================================

async def list_archived(session: AsyncSession, context: PolicyContext, collection: str) -> list:
    """Archived rows of one collection, most recently archived first."""
    partition = get_partition(collection)
    # Browsing the archive is reserved for whoever may restore from it
    ensure_access(context, partition.record_type, None, Operation.RESTORE)
    result = await session.execute(
        select(partition.archived).order_by(desc(partition.archived.archived_at))
    )
    return list(result.scalars().all())


async def restore_record(
    session: AsyncSession,
    context: PolicyContext,
    collection: str,
    record_id: UUID,
) -> None:
    """Move an archived record back to its live table."""
    partition = get_partition(collection)
    row = await session.get(partition.archived, record_id)
    if row is None:
        raise NotFound()
    ensure_access(context, partition.record_type, row, Operation.RESTORE)

    details = {"collection": partition.collection}
    touched = [partition]
    if partition.live is Patient:
        taken = await session.execute(select(Patient.id).where(Patient.email == row.email))
        if taken.first() is not None:
            raise ValidationError(GlobalMessages.ACCOUNT_ALREADY_EXISTS, field="email")
        for child in CHILD_PARTITIONS:
            children = await _rows_owned_by(session, child.archived, "archived_with_id", row.id)
            for child_row in children:
                session.add(_to_live(child, child_row))
                await session.delete(child_row)
            details[child.collection] = len(children)
            touched.append(child)
    elif not await _owner_exists(session, getattr(row, partition.owner_column)):
        raise ValidationError(GlobalMessages.OWNER_MISSING, field=partition.owner_column)

    description = f"Restored {partition.label} {getattr(row, 'name', None) or row.id}"
    session.add(_to_live(partition, row))
    await session.delete(row)
    await commit_or_raise(session)
    _publish(*touched)

    await audit_service.record(
        context.actor,
        AuditAction.RECORD_RESTORED,
        description,
        target_id=record_id,
        target_type=partition.collection,
        details=details,
    )


# ============================================================================
# PERMANENT DELETE
# ============================================================================

async def permanently_delete_record(
    session: AsyncSession,
    context: PolicyContext,
    collection: str,
    record_id: UUID,
    password: str,
) -> None:
    """
    Remove an archived record for good. Needs the admin's password again.

    Purging a patient purges every archived record they own along with their
    appointments. It is refused while live records still point at the patient.
    """
    partition = get_partition(collection)
    row = await session.get(partition.archived, record_id)
    if row is None:
        raise NotFound()
    context = context.with_reauthentication()
    # Role is checked before the password
    ensure_access(context, partition.record_type, row, Operation.PERMANENT_DELETE)
    reauthenticate(context.actor, password)

    details = {"collection": partition.collection}
    touched = [partition]
    if partition.live is Patient:
        for child in CHILD_PARTITIONS:
            if await _rows_owned_by(session, child.live, child.owner_column, row.id):
                raise ValidationError(
                    f"Live {child.label}s still belong to this patient. Archive them first.",
                    field="id",
                )
        for child in CHILD_PARTITIONS:
            children = await _rows_owned_by(session, child.archived, child.owner_column, row.id)
            for child_row in children:
                await session.delete(child_row)
            details[child.collection] = len(children)
            touched.append(child)
        # No appointment may point at a purged account
        appointments = await _rows_owned_by(session, Appointment, "patient_id", row.id)
        for appointment in appointments:
            await session.delete(appointment)
        details["appointments"] = len(appointments)

    description = f"Permanently deleted {partition.label} {getattr(row, 'name', None) or row.id}"
    await session.delete(row)
    await commit_or_raise(session)
    _publish(*touched)
    if details.get("appointments"):
        change_feed.publish("appointments")
    logger.info("Permanently deleted %s %s", partition.collection, record_id)

    await audit_service.record(
        context.actor,
        AuditAction.RECORD_PERMANENTLY_DELETED,
        description,
        target_id=record_id,
        target_type=partition.collection,
        details=details,
    )
