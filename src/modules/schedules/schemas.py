# src/modules/schedules/schemas.py
"""Schedules module Pydantic schemas."""

import re
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .availability import WEEKDAY_NAMES

TIME_FORMAT = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def _check_time(value: Optional[str], label: str) -> Optional[str]:
    if value in (None, ""):
        return None
    if not TIME_FORMAT.match(value):
        raise ValueError(f"Invalid {label} format (HH:MM).")
    return value


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class BreakTime(BaseModel):
    start_time: str = Field(..., min_length=5, max_length=5)
    end_time: str = Field(..., min_length=5, max_length=5)

    @field_validator("start_time")
    def check_start(cls, value):
        return _check_time(value, "start time")

    @field_validator("end_time")
    def check_end(cls, value):
        return _check_time(value, "end time")

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("End time must be after start time.")
        return self


class WorkingDay(BaseModel):
    day_of_week: str
    is_enabled: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_times: List[BreakTime] = Field(default_factory=list)

    @field_validator("day_of_week")
    def check_day(cls, value):
        if value not in WEEKDAY_NAMES:
            raise ValueError(f"day_of_week must be one of {', '.join(WEEKDAY_NAMES)}")
        return value

    @field_validator("start_time")
    def check_start(cls, value):
        return _check_time(value, "start time")

    @field_validator("end_time")
    def check_end(cls, value):
        return _check_time(value, "end time")

    @model_validator(mode="after")
    def check_enabled_day(self):
        if self.is_enabled:
            if not self.start_time:
                raise ValueError("Start time is required when day is enabled.")
            if not self.end_time:
                raise ValueError("End time is required when day is enabled.")
            if self.start_time >= self.end_time:
                raise ValueError("End time must be after start time.")
        return self


class ScheduleUpsertRequest(BaseModel):
    """Replaces the provider's whole schedule."""
    working_hours: List[WorkingDay] = Field(..., min_length=7, max_length=7)
    default_slot_duration_minutes: int = Field(30, ge=5, le=240)
    notice_period_hours: int = Field(0, ge=0)
    unavailable_dates: List[date] = Field(default_factory=list)

    @field_validator("working_hours")
    def check_week_order(cls, value):
        days = [entry.day_of_week for entry in value]
        if days != list(WEEKDAY_NAMES):
            raise ValueError("working_hours must list Sunday through Saturday in order.")
        return value


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class ScheduleResponse(BaseModel):
    id: UUID
    doctor_id: UUID
    working_hours: List[WorkingDay]
    default_slot_duration_minutes: int
    notice_period_hours: int
    unavailable_dates: List[date]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SlotResponse(BaseModel):
    start: datetime
    end: datetime


class SlotListResponse(BaseModel):
    doctor_id: UUID
    day: date
    timezone: str
    slots: List[SlotResponse]


class NextSlotResponse(BaseModel):
    doctor_id: UUID
    timezone: str
    slot: Optional[SlotResponse] = None
