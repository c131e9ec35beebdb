# src/modules/maternity/schemas.py
"""Maternity history Pydantic schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MaternityRecordCreateRequest(BaseModel):
    pregnancy_number: int = Field(..., gt=0)
    delivery_date: Optional[date] = None
    outcome: Optional[str] = None
    complications: Optional[str] = None


class MaternityRecordUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pregnancy_number: Optional[int] = Field(None, gt=0)
    delivery_date: Optional[date] = None
    outcome: Optional[str] = None
    complications: Optional[str] = None


class MaternityRecordResponse(BaseModel):
    id: UUID
    patient_id: UUID
    pregnancy_number: int
    delivery_date: Optional[date] = None
    outcome: Optional[str] = None
    complications: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MaternityRecordListResponse(BaseModel):
    records: List[MaternityRecordResponse]
    total: int
    next_pregnancy_number: int = Field(..., description="Suggested number for the next pregnancy; not enforced")
