# src/modules/audit/audit_controller.py

from types import SimpleNamespace
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.config import settings
from src.common.database.database import get_db_session
from src.models.models import UserRole
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType

from . import audit_service as service
from .schemas import AuditLogListResponse, AuditLogResponse

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditLogListResponse)
async def get_audit_logs(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """
    Most recent audit entries, newest first.

    Admins see everyone's entries; providers see their own activity log.
    """
    # Own entries are the least anyone with audit access may read
    ensure_access(context, RecordType.AUDIT_LOG, SimpleNamespace(user_id=context.actor.id), Operation.READ)

    user_id = None if context.role == UserRole.ADMIN else context.actor.id
    entries = await service.list_recent(db, limit or settings.AUDIT_LOG_DEFAULT_LIMIT, user_id=user_id)
    visible = [
        AuditLogResponse.model_validate(entry)
        for entry in entries
        if can_access(context, RecordType.AUDIT_LOG, entry, Operation.READ)
    ]
    return AuditLogListResponse(entries=visible, total=len(visible))
