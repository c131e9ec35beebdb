# src/modules/bmi/schemas.py
"""BMI history Pydantic schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BmiRecordCreateRequest(BaseModel):
    weight_kg: float = Field(..., gt=0, description="Weight in kilograms")
    height_m: float = Field(..., gt=0, description="Height in metres")
    date: Optional[datetime] = Field(None, description="When the measurement was taken; defaults to now")


class BmiRecordResponse(BaseModel):
    id: UUID
    patient_id: UUID
    date: datetime
    weight_kg: float
    height_m: float
    bmi: float
    recorded_by_id: Optional[UUID] = None
    recorded_by_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BmiRecordListResponse(BaseModel):
    records: List[BmiRecordResponse]
    total: int
