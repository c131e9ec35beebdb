# src/modules/audit/schemas.py

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel

from src.models.models import AuditAction, UserRole


class AuditLogResponse(BaseModel):
    id: UUID
    timestamp: datetime
    user_id: UUID
    user_name: str
    user_role: UserRole
    action: AuditAction
    description: str
    target_id: Optional[str] = None
    target_type: Optional[str] = None
    details: Optional[Any] = None

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    entries: List[AuditLogResponse]
    total: int
