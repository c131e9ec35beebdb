# src/modules/patients/schemas.py
"""Patients module Pydantic schemas."""

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.models import UserRole

YesNo = Literal["yes", "no"]


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class PatientUpdateRequest(BaseModel):
    """Demographic profile edit. Role and email are not editable here."""
    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    middle_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    date_of_birth: Optional[date] = None
    phone_number: Optional[str] = Field(None, min_length=5, max_length=30)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    sex: Optional[Literal["male", "female", "other"]] = None
    civil_status: Optional[str] = Field(None, max_length=50)
    religion: Optional[str] = Field(None, max_length=100)
    ethnicity: Optional[str] = Field(None, max_length=100)
    nationality: Optional[str] = Field(None, max_length=100)
    highest_education: Optional[str] = Field(None, max_length=100)
    occupation: Optional[str] = Field(None, max_length=100)
    monthly_income: Optional[str] = Field(None, max_length=50)
    philhealth_member: Optional[YesNo] = None
    philhealth_number: Optional[str] = Field(None, max_length=50)
    health_facility_member: Optional[YesNo] = None
    household_member: Optional[YesNo] = None
    blood_type: Optional[str] = Field(None, max_length=5)
    remarks: Optional[str] = None


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class PatientResponse(BaseModel):
    """Full profile."""
    id: UUID
    email: str
    role: UserRole
    name: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    date_of_birth: Optional[date] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    sex: Optional[str] = None
    civil_status: Optional[str] = None
    religion: Optional[str] = None
    ethnicity: Optional[str] = None
    nationality: Optional[str] = None
    highest_education: Optional[str] = None
    occupation: Optional[str] = None
    monthly_income: Optional[str] = None
    philhealth_member: Optional[str] = None
    philhealth_number: Optional[str] = None
    health_facility_member: Optional[str] = None
    household_member: Optional[str] = None
    blood_type: Optional[str] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PatientListResponse(BaseModel):
    patients: List[PatientResponse]
    total: int
