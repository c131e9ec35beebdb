# src/modules/consultations/schemas.py
"""Consultations module Pydantic schemas."""

from datetime import date as date_type
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.models import ConsultationSubject


class _SubjectChecks(BaseModel):
    @model_validator(mode="after")
    def check_baby_selected(self):
        if self.subject_type == ConsultationSubject.BABY and not self.baby_id:
            raise ValueError("Please select a baby if the consultation is for a baby.")
        return self


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class ConsultationCreateRequest(_SubjectChecks):
    """
    A consultation record written by a provider, or a concern submitted by the
    patient. Concerns carry no diagnosis or treatment plan until a provider responds.
    """
    date: date_type = Field(default_factory=date_type.today)
    notes: str = Field(..., min_length=10)
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    subject_type: ConsultationSubject = ConsultationSubject.MOTHER
    baby_id: Optional[UUID] = None
    doctor_id: Optional[UUID] = Field(None, description="Attributed provider; admins only")


class ConsultationUpdateRequest(_SubjectChecks):
    """Partial update. The owning patient never changes."""
    model_config = ConfigDict(extra="forbid")

    date: Optional[date_type] = None
    notes: Optional[str] = Field(None, min_length=10)
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    subject_type: Optional[ConsultationSubject] = None
    baby_id: Optional[UUID] = None


class ConsultationRespondRequest(BaseModel):
    """A provider's answer to a patient concern."""
    diagnosis: str = Field(..., min_length=1)
    treatment_plan: str = Field(..., min_length=1)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class ConsultationResponse(BaseModel):
    id: UUID
    patient_id: UUID
    doctor_id: Optional[UUID] = None
    appointment_id: Optional[UUID] = None
    date: date_type
    notes: str
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    subject_type: ConsultationSubject
    baby_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConsultationListResponse(BaseModel):
    consultations: List[ConsultationResponse]
    total: int
