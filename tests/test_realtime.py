"""
Tests for the change feed and the per-actor collection streams built on it.
"""
import asyncio
import uuid
from datetime import timedelta

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from src.auth.auth_service import issue_token_for
from src.common.config import settings
from src.common.database.database import async_session
from src.common.realtime import ChangeFeed, StoreQuery, change_feed
from src.main import app
from src.models.models import AppointmentStatus, AuditAction, AuditLog, UserRole, utcnow
from src.modules.realtime import realtime_service

from tests.conftest import auth_headers, create_appointment, manila, next_weekday


def counting_loader():
    """Loader that returns how many times it has been called."""
    calls = {"n": 0}

    async def load(query):
        calls["n"] += 1
        return [calls["n"]]

    return load


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def feed():
    return ChangeFeed()


class TestStoreQuery:

    def test_unknown_collection_is_rejected(self):
        with pytest.raises(ValueError):
            StoreQuery("messages")

    def test_limit_needs_ordering(self):
        with pytest.raises(ValueError):
            StoreQuery("auditLogs", limit_to_last=10)


class TestChangeFeed:
    """Snapshots on subscribe and after each publish"""

    async def test_initial_snapshot_then_one_per_change(self, feed):
        subscription = feed.subscribe(StoreQuery("consultations"), counting_loader())

        assert await subscription.__anext__() == [1]
        feed.publish("consultations")
        assert await asyncio.wait_for(subscription.__anext__(), timeout=1) == [2]

    async def test_other_collections_do_not_trigger_reload(self, feed):
        subscription = feed.subscribe(StoreQuery("consultations"), counting_loader())
        await subscription.__anext__()

        feed.publish("appointments")

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(subscription.__anext__(), timeout=0.05)

    async def test_burst_of_writes_collapses_into_one_reload(self, feed):
        subscription = feed.subscribe(StoreQuery("consultations"), counting_loader())
        await subscription.__anext__()

        for _ in range(5):
            feed.publish("consultations")

        assert await subscription.__anext__() == [2]

    async def test_cancel_is_idempotent_and_releases_listener(self, feed):
        """
        GIVEN an open subscription
        WHEN it is cancelled twice
        THEN the listener is gone and iteration stops
        """
        subscription = feed.subscribe(StoreQuery("consultations"), counting_loader())
        assert feed.listener_count("consultations") == 1

        subscription.cancel()
        subscription.cancel()

        assert feed.listener_count() == 0
        assert subscription.cancelled
        with pytest.raises(StopAsyncIteration):
            await subscription.__anext__()

    async def test_context_manager_cancels_on_exit(self, feed):
        async with feed.subscribe(StoreQuery("appointments"), counting_loader()) as subscription:
            assert feed.listener_count("appointments") == 1

        assert subscription.cancelled
        assert feed.listener_count("appointments") == 0


class TestStreamQueries:

    def test_patient_filter_uses_owner_column(self):
        mother_id = uuid.uuid4()
        query = realtime_service.build_stream_query("babyRecords", mother_id)

        assert query.equals == {"mother_id": mother_id}
        assert query.order_by == "birth_date"

    def test_audit_stream_is_limited(self):
        query = realtime_service.build_stream_query("auditLogs")
        assert query.limit_to_last is not None

    def test_ownerless_collection_cannot_be_filtered(self):
        with pytest.raises(ValueError):
            realtime_service.build_stream_query("doctorSchedules", uuid.uuid4())

    def test_unknown_stream(self):
        with pytest.raises(ValueError):
            realtime_service.build_stream_query("recordings")


class TestSnapshotLoader:
    """Snapshots only carry rows the actor may read"""

    async def test_patient_sees_only_own_appointments(self, patient, other_patient, doctor):
        monday = next_weekday(0)
        await create_appointment(patient, doctor, manila(monday, 9), status=AppointmentStatus.SCHEDULED)
        await create_appointment(other_patient, doctor, manila(monday, 10), status=AppointmentStatus.SCHEDULED)
        query = realtime_service.build_stream_query("appointments")

        patient_rows = await realtime_service.snapshot_loader(patient.id)(query)
        doctor_rows = await realtime_service.snapshot_loader(doctor.id)(query)

        assert [row["patient_id"] for row in patient_rows] == [str(patient.id)]
        assert len(doctor_rows) == 2

    async def test_profiles_never_carry_credentials(self, admin, patient):
        rows = await realtime_service.snapshot_loader(admin.id)(realtime_service.build_stream_query("patients"))

        assert len(rows) == 2
        assert all("password_hash" not in row for row in rows)

    async def test_archive_streams_are_admin_only(self, client, admin, doctor, patient, related):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))
        query = realtime_service.build_stream_query("archivedPatients")

        assert len(await realtime_service.snapshot_loader(admin.id)(query)) == 1
        assert await realtime_service.snapshot_loader(doctor.id)(query) == []

    async def test_deleted_actor_gets_empty_snapshots(self, patient):
        loader = realtime_service.snapshot_loader(uuid.UUID(int=0))
        assert await loader(realtime_service.build_stream_query("patients")) == []

    async def test_own_audit_entries_survive_newer_activity(self, admin, doctor):
        """
        GIVEN one entry by a doctor followed by a full page of newer admin entries
        WHEN the doctor opens the audit stream
        THEN the doctor's entry is still in the snapshot
        """
        base = utcnow()
        async with async_session() as session:
            session.add(AuditLog(
                timestamp=base,
                user_id=doctor.id,
                user_name=doctor.name,
                user_role=UserRole.DOCTOR,
                action=AuditAction.APPOINTMENT_CANCELLED,
                description="doctor cancelled",
            ))
            for minutes in range(1, settings.AUDIT_LOG_DEFAULT_LIMIT + 1):
                session.add(AuditLog(
                    timestamp=base + timedelta(minutes=minutes),
                    user_id=admin.id,
                    user_name=admin.name,
                    user_role=UserRole.ADMIN,
                    action=AuditAction.ROLE_CHANGED,
                    description=f"admin change {minutes}",
                ))
            await session.commit()
        query = realtime_service.build_stream_query("auditLogs")

        doctor_rows = await realtime_service.snapshot_loader(doctor.id)(query)
        admin_rows = await realtime_service.snapshot_loader(admin.id)(query)

        assert [row["description"] for row in doctor_rows] == ["doctor cancelled"]
        assert len(admin_rows) == settings.AUDIT_LOG_DEFAULT_LIMIT
        assert "doctor cancelled" not in [row["description"] for row in admin_rows]


class TestStreamSocket:

    async def test_socket_sends_snapshot_and_releases_listener(self, patient):
        """
        GIVEN a patient connected to the appointments stream
        WHEN the first snapshot arrives and the client disconnects
        THEN the subscription and its sender are torn down
        """
        token = issue_token_for(patient)

        with TestClient(app).websocket_connect(f"/ws/appointments?token={token}") as websocket:
            assert websocket.receive_json() == {"collection": "appointments", "records": []}

        assert change_feed.listener_count() == 0

    async def test_bad_token_is_refused(self):
        with pytest.raises(WebSocketDisconnect):
            with TestClient(app).websocket_connect("/ws/appointments?token=nope") as websocket:
                websocket.receive_json()
