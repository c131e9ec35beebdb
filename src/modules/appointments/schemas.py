# src/modules/appointments/schemas.py
"""Appointments module Pydantic schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.models.models import AppointmentStatus, UserRole


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class AppointmentCreateRequest(BaseModel):
    """Request to book one of a doctor's slots."""
    doctor_id: UUID
    start: datetime = Field(..., description="Slot start; naive values are read as clinic time")
    reason_for_visit: Optional[str] = Field(None, max_length=500)
    patient_id: Optional[UUID] = Field(None, description="Admins book on behalf of a patient")


class AppointmentCancelRequest(BaseModel):
    """Request to cancel an appointment."""
    cancellation_reason: Optional[str] = Field(None, max_length=500)


class AppointmentCompleteRequest(BaseModel):
    """Closes the appointment and records the consultation that came out of it."""
    notes: Optional[str] = Field(None, min_length=10)
    diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class AppointmentResponse(BaseModel):
    """Full appointment details."""
    id: UUID
    patient_id: UUID
    patient_name: str
    doctor_id: UUID
    doctor_name: str
    appointment_start: datetime
    appointment_end: datetime
    duration_minutes: int
    status: AppointmentStatus
    reason_for_visit: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by_role: Optional[UserRole] = None
    cancelled_by_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class AppointmentListResponse(BaseModel):
    """List of appointments."""
    appointments: List[AppointmentResponse]
    total: int


class AppointmentCompleteResponse(BaseModel):
    appointment: AppointmentResponse
    consultation_id: UUID
