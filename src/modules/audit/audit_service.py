# src/modules/audit/audit_service.py
"""Audit trail: one append-only entry per privileged mutation."""

import logging
from typing import Any, List, Optional
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.database.database import async_session
from src.common.realtime import StoreQuery, change_feed, run_query
from src.models.models import AuditAction, AuditLog, Patient, utcnow

logger = logging.getLogger(__name__)


async def record(
    actor: Patient,
    action: AuditAction,
    description: str,
    target_id: Optional[Any] = None,
    target_type: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    """
    Append an audit entry right after the mutation it describes has committed.

    Writes through its own session so a failure here can never roll back or
    expire the caller's work. Failures are logged and dropped.
    """
    try:
        entry = AuditLog(
            timestamp=utcnow(),
            user_id=actor.id,
            user_name=actor.name,
            user_role=actor.role,
            action=action,
            description=description,
            target_id=str(target_id) if target_id is not None else None,
            target_type=target_type,
            details=jsonable_encoder(details) if details is not None else None,
        )
        async with async_session() as session:
            session.add(entry)
            await session.commit()
    except Exception:
        logger.exception("Audit write failed: %s on %s %s", action.value, target_type, target_id)
        return
    change_feed.publish("auditLogs")


async def list_recent(
    session: AsyncSession,
    limit: int,
    user_id: Optional[UUID] = None,
) -> List[AuditLog]:
    """The `limit` most recent entries, newest first."""
    equals = {"user_id": user_id} if user_id is not None else {}
    rows = await run_query(
        session,
        StoreQuery("auditLogs", equals=equals, order_by="timestamp", limit_to_last=limit),
    )
    return list(reversed(rows))
