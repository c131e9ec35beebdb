# src/modules/babies/schemas.py
"""Baby health record Pydantic schemas."""

from datetime import date as date_type, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Vaccination(BaseModel):
    date: date_type
    vaccine: str = Field(..., min_length=1)
    notes: Optional[str] = None


class Checkup(BaseModel):
    date: date_type
    notes: str
    weight: Optional[str] = None
    height: Optional[str] = None


class BabyRecordCreateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=160)
    birth_date: date_type
    birth_weight: Optional[str] = Field(None, max_length=50)
    birth_length: Optional[str] = Field(None, max_length=50)
    apgar_score: Optional[str] = Field(None, max_length=20)
    vaccinations: List[Vaccination] = Field(default_factory=list)
    checkups: List[Checkup] = Field(default_factory=list)


class BabyRecordUpdateRequest(BaseModel):
    """Partial update. The mother never changes."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=160)
    birth_date: Optional[date_type] = None
    birth_weight: Optional[str] = Field(None, max_length=50)
    birth_length: Optional[str] = Field(None, max_length=50)
    apgar_score: Optional[str] = Field(None, max_length=20)
    vaccinations: Optional[List[Vaccination]] = None
    checkups: Optional[List[Checkup]] = None


class BabyRecordResponse(BaseModel):
    id: UUID
    mother_id: UUID
    name: Optional[str] = None
    birth_date: date_type
    birth_weight: Optional[str] = None
    birth_length: Optional[str] = None
    apgar_score: Optional[str] = None
    vaccinations: List[Vaccination] = Field(default_factory=list)
    checkups: List[Checkup] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BabyRecordListResponse(BaseModel):
    records: List[BabyRecordResponse]
    total: int
