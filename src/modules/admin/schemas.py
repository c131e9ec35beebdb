# src/modules/admin/schemas.py
"""Admin user management, backup and dashboard schemas."""

from typing import Dict, Optional

from pydantic import BaseModel, EmailStr, Field

from src.auth.schemas import UserResponse
from src.models.models import UserRole


class AdminUserCreateRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    middle_name: Optional[str] = Field(None, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.PATIENT


class RoleChangeRequest(BaseModel):
    role: UserRole


class RoleChangeResponse(BaseModel):
    user: UserResponse
    previous_role: UserRole


class DashboardStats(BaseModel):
    """Headline counts for the admin dashboard"""
    total_patients: int
    total_doctors: int
    total_midwives_nurses: int
    total_appointments: int
    appointments_by_status: Dict[str, int]
    archived_patients: int
