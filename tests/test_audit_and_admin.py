"""
Tests for the audit trail and the admin-only operations that feed it.
"""
import json
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from src.common.database.database import async_session
from src.models.models import AuditAction, AuditLog, Patient, UserRole, utcnow
from src.modules.admin.admin_service import backup_filename
from src.modules.audit import audit_service

from tests.conftest import PASSWORD, auth_headers


async def audit_entries():
    async with async_session() as session:
        return (await session.execute(select(AuditLog).order_by(AuditLog.timestamp))).scalars().all()


class TestAuditTrail:

    async def test_entries_are_listed_newest_first(self, client, admin):
        base = utcnow()
        async with async_session() as session:
            for minutes, description in ((0, "first"), (5, "second"), (10, "third")):
                session.add(AuditLog(
                    timestamp=base + timedelta(minutes=minutes),
                    user_id=admin.id,
                    user_name=admin.name,
                    user_role=UserRole.ADMIN,
                    action=AuditAction.ROLE_CHANGED,
                    description=description,
                ))
            await session.commit()

        response = await client.get("/audit-logs?limit=2", headers=auth_headers(admin))

        assert response.status_code == 200
        assert [entry["description"] for entry in response.json()["entries"]] == ["third", "second"]

    async def test_provider_sees_only_own_activity(self, client, admin, doctor):
        await audit_service.record(admin, AuditAction.ROLE_CHANGED, "admin did something")
        await audit_service.record(doctor, AuditAction.APPOINTMENT_CANCELLED, "doctor cancelled")

        response = await client.get("/audit-logs", headers=auth_headers(doctor))

        assert [entry["description"] for entry in response.json()["entries"]] == ["doctor cancelled"]

    async def test_patients_cannot_read_audit_log(self, client, patient):
        response = await client.get("/audit-logs", headers=auth_headers(patient))
        assert response.status_code == 403

    async def test_audit_failure_never_blocks_the_mutation(self, client, admin, patient, monkeypatch):
        """
        GIVEN the audit store is failing
        WHEN an admin changes a role
        THEN the role change still succeeds and no entry is written
        """
        def broken_session():
            raise RuntimeError("audit store down")

        monkeypatch.setattr(audit_service, "async_session", broken_session)

        response = await client.put(
            f"/admin/users/{patient.id}/role", json={"role": "doctor"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert await audit_entries() == []
        async with async_session() as session:
            assert (await session.get(Patient, patient.id)).role == UserRole.DOCTOR


class TestRoleChange:
    """Roles are changed by admins, never to or from admin"""

    async def test_admin_changes_role_with_one_audit_entry(self, client, admin, patient):
        response = await client.put(
            f"/admin/users/{patient.id}/role", json={"role": "midwife/nurse"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "midwife/nurse"
        assert response.json()["previous_role"] == "patient"
        entries = await audit_entries()
        assert [entry.action for entry in entries] == [AuditAction.ROLE_CHANGED]
        assert entries[0].target_id == str(patient.id)

    async def test_admin_role_is_not_assignable(self, client, admin, patient):
        response = await client.put(
            f"/admin/users/{patient.id}/role", json={"role": "admin"}, headers=auth_headers(admin)
        )

        assert response.status_code == 422

    async def test_admin_accounts_keep_their_role(self, client, admin):
        response = await client.put(
            f"/admin/users/{admin.id}/role", json={"role": "doctor"}, headers=auth_headers(admin)
        )

        assert response.status_code == 422

    async def test_non_admin_cannot_change_roles(self, client, doctor, patient):
        response = await client.put(
            f"/admin/users/{patient.id}/role", json={"role": "doctor"}, headers=auth_headers(doctor)
        )

        assert response.status_code == 403

    async def test_demoted_doctor_loses_access_to_patient_records(self, client, admin, doctor, patient, related):
        """
        GIVEN a doctor who has seen the patient
        WHEN the admin changes the doctor's role to patient
        THEN the former doctor can no longer read the patient's records
        """
        before = await client.get(f"/patients/{patient.id}/consultations", headers=auth_headers(doctor))
        assert before.status_code == 200

        await client.put(f"/admin/users/{doctor.id}/role", json={"role": "patient"}, headers=auth_headers(admin))

        after = await client.get(f"/patients/{patient.id}/consultations", headers=auth_headers(doctor))
        assert after.status_code == 403


class TestCreateUser:

    async def test_admin_creates_doctor_account(self, client, admin):
        response = await client.post(
            "/admin/users",
            json={
                "first_name": "Pedro",
                "last_name": "Lim",
                "email": "Pedro.Lim@Example.com",
                "password": "Doctor@123",
                "role": "doctor",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["role"] == "doctor"
        assert response.json()["email"] == "pedro.lim@example.com"
        assert [entry.action for entry in await audit_entries()] == [AuditAction.USER_CREATED]

    async def test_duplicate_email_is_rejected(self, client, admin, patient):
        response = await client.post(
            "/admin/users",
            json={
                "first_name": "Liza",
                "last_name": "Garcia",
                "email": patient.email,
                "password": "Patient@123",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "email"

    async def test_patient_cannot_create_accounts(self, client, patient):
        response = await client.post(
            "/admin/users",
            json={"first_name": "A", "last_name": "B", "email": "a.b@example.com", "password": "secret1"},
            headers=auth_headers(patient),
        )

        assert response.status_code == 403


class TestBackup:

    async def test_backup_requires_password(self, client, admin):
        response = await client.post("/admin/backup", json={"password": "wrong"}, headers=auth_headers(admin))

        assert response.status_code == 401
        assert await audit_entries() == []

    async def test_backup_exports_every_collection_without_credentials(self, client, admin, patient, related):
        response = await client.post("/admin/backup", json={"password": PASSWORD}, headers=auth_headers(admin))

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="firebase-backup-' in disposition
        tree = json.loads(response.content)
        assert str(patient.id) in tree["patients"]
        assert "password_hash" not in tree["patients"][str(patient.id)]
        assert len(tree["appointments"]) == 1
        assert tree["archivedPatients"] == {}
        assert [entry.action for entry in await audit_entries()] == [AuditAction.DATABASE_BACKUP_DOWNLOADED]

    async def test_doctor_cannot_download_backup(self, client, doctor):
        response = await client.post("/admin/backup", json={"password": PASSWORD}, headers=auth_headers(doctor))
        assert response.status_code == 403

    async def test_role_is_checked_before_password(self, client, patient):
        response = await client.post("/admin/backup", json={"password": "wrong"}, headers=auth_headers(patient))

        assert response.status_code == 403
        assert await audit_entries() == []

    def test_backup_filename_replaces_colons_and_dots(self):
        name = backup_filename(datetime(2024, 5, 1, 8, 30, 0, 123000, tzinfo=timezone.utc))
        assert name == "firebase-backup-2024-05-01T08-30-00-123Z.json"


class TestDashboard:

    async def test_counts_by_role_and_status(self, client, admin, doctor, midwife, patient, related):
        response = await client.get("/admin/dashboard", headers=auth_headers(admin))

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_patients"] == 1
        assert stats["total_doctors"] == 1
        assert stats["total_midwives_nurses"] == 1
        assert stats["appointments_by_status"]["completed"] == 1
        assert stats["total_appointments"] == 1

    async def test_dashboard_is_admin_only(self, client, doctor):
        response = await client.get("/admin/dashboard", headers=auth_headers(doctor))
        assert response.status_code == 403

