# src/auth/schemas.py

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from src.common.errors import ValidationError
from src.common.utils.global_messages import GlobalMessages
from src.models.models import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Account info returned after login/signup"""
    id: UUID
    email: str
    name: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    role: UserRole

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SignupRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    middle_name: Optional[str] = Field(None, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    password_confirm: str = Field(..., min_length=6)

    @model_validator(mode="after")
    def validate_passwords_match(self):
        if self.password != self.password_confirm:
            raise ValidationError(GlobalMessages.PASSWORDS_DO_NOT_MATCH, field="password_confirm")
        return self


class SignupResponse(BaseModel):
    message: str = "Account created successfully."
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class PasswordConfirmation(BaseModel):
    """Fresh password confirmation for destructive admin actions."""
    password: str = Field(..., min_length=1)
