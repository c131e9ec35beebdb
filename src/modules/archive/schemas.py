# src/modules/archive/schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class ArchivedRecordResponse(BaseModel):
    id: UUID
    collection: str
    archived_at: datetime
    archived_by_id: Optional[UUID] = None
    archived_with_id: Optional[UUID] = None
    record: Dict[str, Any]


class ArchivedRecordListResponse(BaseModel):
    collection: str
    records: List[ArchivedRecordResponse]
    total: int


class ArchiveActionResponse(BaseModel):
    success: bool = True
    message: str
