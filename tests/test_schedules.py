"""
Tests for doctor schedules and the slot endpoints.
"""
from datetime import date

from sqlalchemy import select

from src.common.database.database import async_session
from src.models.models import AppointmentStatus, AuditAction, AuditLog

from tests.conftest import auth_headers, create_appointment, manila, next_weekday, weekday_hours

SCHEDULE = {
    "working_hours": weekday_hours(start="09:00", end="12:00", breaks=()),
    "default_slot_duration_minutes": 60,
    "notice_period_hours": 0,
    "unavailable_dates": [],
}


class TestScheduleWrites:
    """Only admins write schedules"""

    async def test_admin_creates_schedule(self, client, admin, doctor):
        response = await client.put(f"/schedules/{doctor.id}", json=SCHEDULE, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["default_slot_duration_minutes"] == 60
        async with async_session() as session:
            actions = (await session.execute(select(AuditLog.action))).scalars().all()
        assert actions == [AuditAction.SCHEDULE_UPDATED]

    async def test_doctor_cannot_edit_own_schedule(self, client, doctor, schedule):
        response = await client.put(f"/schedules/{doctor.id}", json=SCHEDULE, headers=auth_headers(doctor))
        assert response.status_code == 403

    async def test_patients_hold_no_schedule(self, client, admin, patient):
        response = await client.put(f"/schedules/{patient.id}", json=SCHEDULE, headers=auth_headers(admin))

        assert response.status_code == 422

    async def test_midwife_can_hold_a_schedule(self, client, admin, midwife):
        """
        GIVEN a midwife/nurse account
        WHEN an admin saves a schedule for them
        THEN the midwife can read their own schedule
        """
        response = await client.put(f"/schedules/{midwife.id}", json=SCHEDULE, headers=auth_headers(admin))
        assert response.status_code == 200

        response = await client.get(f"/schedules/{midwife.id}", headers=auth_headers(midwife))

        assert response.status_code == 200
        assert response.json()["doctor_id"] == str(midwife.id)

    async def test_week_must_be_complete_and_ordered(self, client, admin, doctor):
        response = await client.put(
            f"/schedules/{doctor.id}",
            json={**SCHEDULE, "working_hours": list(reversed(SCHEDULE["working_hours"]))},
            headers=auth_headers(admin),
        )

        assert response.status_code == 422

    async def test_enabled_day_needs_hours(self, client, admin, doctor):
        hours = weekday_hours()
        hours[1] = {**hours[1], "end_time": None}

        response = await client.put(
            f"/schedules/{doctor.id}", json={**SCHEDULE, "working_hours": hours}, headers=auth_headers(admin)
        )

        assert response.status_code == 422


class TestScheduleReads:

    async def test_doctor_reads_own_schedule(self, client, doctor, schedule):
        response = await client.get(f"/schedules/{doctor.id}", headers=auth_headers(doctor))

        assert response.status_code == 200
        assert response.json()["doctor_id"] == str(doctor.id)

    async def test_other_doctor_cannot_read(self, client, other_doctor, doctor, schedule):
        response = await client.get(f"/schedules/{doctor.id}", headers=auth_headers(other_doctor))
        assert response.status_code == 403


class TestSlots:

    async def test_slots_skip_booked_and_break_times(self, client, patient, doctor, schedule):
        """
        GIVEN a weekday with a lunch break and one booking at 09:00
        WHEN a patient asks for that day's slots
        THEN neither the booked slot nor the break is offered
        """
        monday = next_weekday(0)
        await create_appointment(patient, doctor, manila(monday, 9), status=AppointmentStatus.SCHEDULED)

        response = await client.get(
            f"/schedules/{doctor.id}/slots", params={"date": monday.isoformat()}, headers=auth_headers(patient)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["timezone"] == "Asia/Manila"
        starts = [slot["start"] for slot in body["slots"]]
        assert manila(monday, 8).isoformat() in starts
        assert manila(monday, 9).isoformat() not in starts
        assert manila(monday, 12).isoformat() not in starts
        assert len(starts) == 15

    async def test_weekend_has_no_slots(self, client, patient, doctor, schedule):
        saturday = next_weekday(5)

        response = await client.get(
            f"/schedules/{doctor.id}/slots", params={"date": saturday.isoformat()}, headers=auth_headers(patient)
        )

        assert response.json()["slots"] == []

    async def test_next_slot_without_schedule(self, client, patient, doctor):
        response = await client.get(f"/schedules/{doctor.id}/next-slot", headers=auth_headers(patient))

        assert response.status_code == 404

    async def test_past_day_has_no_slots(self, client, patient, doctor, schedule):
        response = await client.get(
            f"/schedules/{doctor.id}/slots", params={"date": date(2024, 5, 6).isoformat()}, headers=auth_headers(patient)
        )

        assert response.json()["slots"] == []
