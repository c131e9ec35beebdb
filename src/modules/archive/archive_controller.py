# src/modules/archive/archive_controller.py
"""Archive controller: browse, restore and purge archived records."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.schemas import PasswordConfirmation
from src.common.database.database import get_db_session
from src.common.realtime import row_to_dict
from src.models.models import as_utc
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import archive_service as service
from .schemas import ArchiveActionResponse, ArchivedRecordListResponse, ArchivedRecordResponse

router = APIRouter(prefix="/archive", tags=["Archive"])


@router.get("/{collection}", response_model=ArchivedRecordListResponse)
async def list_archived(
    collection: str,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """
    Archived records of one collection.

    - **collection**: patients, consultations, maternityRecords, babyRecords or bmiRecords
    """
    rows = await service.list_archived(db, context, collection)
    records = [
        ArchivedRecordResponse(
            id=row.id,
            collection=collection,
            archived_at=as_utc(row.archived_at),
            archived_by_id=row.archived_by_id,
            archived_with_id=row.archived_with_id,
            record=row_to_dict(row, exclude=service.ARCHIVE_COLUMNS + ("password_hash",)),
        )
        for row in rows
    ]
    return ArchivedRecordListResponse(collection=collection, records=records, total=len(records))


@router.post("/{collection}/{record_id}/restore", response_model=ArchiveActionResponse)
async def restore_record(
    collection: str,
    record_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Move an archived record back to the live records."""
    await service.restore_record(db, context, collection, record_id)
    return ArchiveActionResponse(message="Record restored successfully.")


@router.post("/{collection}/{record_id}/permanent-delete", response_model=ArchiveActionResponse)
async def permanently_delete_record(
    collection: str,
    record_id: UUID,
    confirmation: PasswordConfirmation,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """
    Delete an archived record for good. There is no way back.

    - **password**: the admin's current password, confirmed again for this action
    """
    await service.permanently_delete_record(db, context, collection, record_id, confirmation.password)
    return ArchiveActionResponse(message="Record permanently deleted.")
