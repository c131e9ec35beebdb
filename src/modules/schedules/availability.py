# src/modules/schedules/availability.py
"""
Bookable slots from a provider's weekly template.

Pure functions: no session, no clock. Callers pass `now` and the provider's
existing appointments, and get back a fresh list on every call.

Slots are laid out on the clinic's wall clock from each working day's start
in steps of the slot duration. The last slot ends at or before the day's end.
A slot is dropped when it touches a break, overlaps a live appointment, or
starts inside the notice window.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pytz

from src.models.models import ACTIVE_APPOINTMENT_STATUSES, as_utc

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True, order=True)
class TimeSlot:
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open intervals [a_start, a_end) and [b_start, b_end) share an instant."""
    return a_start < b_end and b_start < a_end


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def weekday_index(day: date) -> int:
    """Position of `day` in the Sunday-first working hours array."""
    return (day.weekday() + 1) % 7


def get_timezone(name: str) -> pytz.BaseTzInfo:
    return pytz.timezone(name)


def _localize(tz: pytz.BaseTzInfo, day: date, at: time) -> datetime:
    return tz.localize(datetime.combine(day, at))


def _working_day(schedule: Any, day: date) -> Optional[dict]:
    working_hours = schedule.working_hours or []
    index = weekday_index(day)
    if index >= len(working_hours):
        return None
    return working_hours[index]


def is_day_open(schedule: Any, day: date) -> bool:
    entry = _working_day(schedule, day)
    if not entry or not entry.get("is_enabled"):
        return False
    if not entry.get("start_time") or not entry.get("end_time"):
        return False
    return day.isoformat() not in set(schedule.unavailable_dates or ())


def candidate_slots(schedule: Any, day: date, tz: pytz.BaseTzInfo) -> List[TimeSlot]:
    """Grid slots for `day` minus break windows, ignoring bookings and the clock."""
    if not is_day_open(schedule, day):
        return []

    entry = _working_day(schedule, day)
    day_start = _localize(tz, day, parse_hhmm(entry["start_time"]))
    day_end = _localize(tz, day, parse_hhmm(entry["end_time"]))
    step = timedelta(minutes=schedule.default_slot_duration_minutes)
    breaks = [
        (_localize(tz, day, parse_hhmm(b["start_time"])), _localize(tz, day, parse_hhmm(b["end_time"])))
        for b in entry.get("break_times") or ()
    ]

    slots = []
    cursor = day_start
    while cursor + step <= day_end:
        slot_end = cursor + step
        if not any(overlaps(cursor, slot_end, b_start, b_end) for b_start, b_end in breaks):
            slots.append(TimeSlot(cursor, slot_end))
        cursor = slot_end
    return slots


def busy_intervals(existing_appointments: Iterable[Any]) -> List[Tuple[datetime, datetime]]:
    """Intervals held by appointments that still occupy the provider."""
    return [
        (as_utc(appointment.appointment_start), as_utc(appointment.appointment_end))
        for appointment in existing_appointments
        if appointment.status in ACTIVE_APPOINTMENT_STATUSES
    ]


def notice_boundary(schedule: Any, now: datetime) -> datetime:
    """Earliest instant a new booking may start."""
    return now + timedelta(hours=max(schedule.notice_period_hours or 0, 0))


def is_slot_free(slot: TimeSlot, busy: Sequence[Tuple[datetime, datetime]]) -> bool:
    return not any(overlaps(slot.start, slot.end, b_start, b_end) for b_start, b_end in busy)


def compute_available_slots(
    schedule: Any,
    day: date,
    existing_appointments: Iterable[Any],
    now: datetime,
    tz: pytz.BaseTzInfo,
) -> List[TimeSlot]:
    """Bookable slots on `day`, ascending by start time."""
    busy = busy_intervals(existing_appointments)
    earliest = notice_boundary(schedule, now)
    return [
        slot
        for slot in candidate_slots(schedule, day, tz)
        if slot.start > now and slot.start >= earliest and is_slot_free(slot, busy)
    ]


def find_next_available_slot(
    schedule: Any,
    existing_appointments: Iterable[Any],
    now: datetime,
    tz: pytz.BaseTzInfo,
    horizon_days: int = 30,
) -> Optional[TimeSlot]:
    """First bookable slot from today (clinic time) up to `horizon_days` ahead."""
    appointments = list(existing_appointments)
    first_day = now.astimezone(tz).date()
    for offset in range(horizon_days + 1):
        day = first_day + timedelta(days=offset)
        slots = compute_available_slots(schedule, day, appointments, now, tz)
        if slots:
            return slots[0]
    return None


def local_day_bounds(day: date, tz: pytz.BaseTzInfo) -> Tuple[datetime, datetime]:
    """UTC instants bounding `day` on the clinic's wall clock."""
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start.astimezone(pytz.utc), end.astimezone(pytz.utc)
