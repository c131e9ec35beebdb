"""
Tests for archiving, restoring and permanently deleting records.
"""
from datetime import date

import pytest
from sqlalchemy import select

from src.common.database.database import async_session
from src.models.models import (
    Appointment,
    ArchivedBmiRecord,
    ArchivedConsultation,
    ArchivedPatient,
    AuditAction,
    AuditLog,
    BabyRecord,
    BmiRecord,
    Consultation,
    MaternityRecord,
    Patient,
)

from tests.conftest import PASSWORD, auth_headers


@pytest.fixture
async def records(patient, doctor):
    """One consultation, maternity record and baby record for the patient."""
    async with async_session() as session:
        consultation = Consultation(
            patient_id=patient.id,
            doctor_id=doctor.id,
            date=date(2024, 5, 6),
            notes="Routine prenatal visit, all normal.",
        )
        maternity = MaternityRecord(patient_id=patient.id, pregnancy_number=1)
        baby = BabyRecord(mother_id=patient.id, name="Baby Garcia", birth_date=date(2023, 4, 1))
        session.add_all([consultation, maternity, baby])
        await session.commit()
        return consultation, maternity, baby


async def count(model, **filters):
    async with async_session() as session:
        query = select(model)
        for column, value in filters.items():
            query = query.where(getattr(model, column) == value)
        return len((await session.execute(query)).scalars().all())


class TestArchive:
    """Deleting moves records into the archive"""

    async def test_deleting_patient_archives_their_records(self, client, admin, patient, records):
        """
        GIVEN a patient with a consultation, maternity and baby record
        WHEN the admin deletes the patient
        THEN the patient and every record move to the archive together
        """
        response = await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        assert response.status_code == 204
        assert await count(Patient, id=patient.id) == 0
        assert await count(Consultation, patient_id=patient.id) == 0
        assert await count(ArchivedPatient, id=patient.id) == 1
        assert await count(ArchivedConsultation, archived_with_id=patient.id) == 1

        # One audit entry for the whole cascade
        async with async_session() as session:
            entries = (await session.execute(select(AuditLog))).scalars().all()
        assert [entry.action for entry in entries] == [AuditAction.RECORD_ARCHIVED]
        assert entries[0].details["consultations"] == 1

    async def test_bmi_history_follows_the_patient(self, client, admin, patient):
        async with async_session() as session:
            session.add(BmiRecord(patient_id=patient.id, weight_kg=60.0, height_m=1.55, bmi=24.97))
            await session.commit()

        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))
        assert await count(BmiRecord, patient_id=patient.id) == 0
        assert await count(ArchivedBmiRecord, archived_with_id=patient.id) == 1

        await client.post(f"/archive/patients/{patient.id}/restore", headers=auth_headers(admin))
        assert await count(BmiRecord, patient_id=patient.id) == 1
        assert await count(ArchivedBmiRecord) == 0

    async def test_admin_accounts_cannot_be_deleted(self, client, admin):
        response = await client.delete(f"/patients/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 422

    async def test_doctor_cannot_delete(self, client, doctor, patient, related, records):
        consultation, _, _ = records
        response = await client.delete(f"/consultations/{consultation.id}", headers=auth_headers(doctor))

        assert response.status_code == 403
        assert await count(Consultation, id=consultation.id) == 1

    async def test_archive_listing_hides_credentials(self, client, admin, patient):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.get("/archive/patients", headers=auth_headers(admin))

        assert response.status_code == 200
        record = response.json()["records"][0]["record"]
        assert record["email"] == patient.email
        assert "password_hash" not in record


class TestRestore:

    async def test_restoring_patient_brings_records_back(self, client, admin, patient, records):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.post(f"/archive/patients/{patient.id}/restore", headers=auth_headers(admin))

        assert response.status_code == 200
        assert await count(Patient, id=patient.id) == 1
        assert await count(Consultation, patient_id=patient.id) == 1
        assert await count(MaternityRecord, patient_id=patient.id) == 1
        assert await count(BabyRecord, mother_id=patient.id) == 1
        assert await count(ArchivedConsultation) == 0

    async def test_child_restore_needs_owner(self, client, admin, patient, records):
        consultation, _, _ = records
        await client.delete(f"/consultations/{consultation.id}", headers=auth_headers(admin))
        async with async_session() as session:
            await session.delete(await session.get(Patient, patient.id))
            await session.commit()

        response = await client.post(
            f"/archive/consultations/{consultation.id}/restore", headers=auth_headers(admin)
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "patient_id"

    async def test_unknown_collection(self, client, admin):
        response = await client.get("/archive/appointments", headers=auth_headers(admin))
        assert response.status_code == 404


class TestPermanentDelete:
    """Purging needs a fresh password confirmation"""

    async def test_wrong_password_is_rejected(self, client, admin, patient):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.post(
            f"/archive/patients/{patient.id}/permanent-delete",
            json={"password": "not-the-password"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 401
        assert await count(ArchivedPatient, id=patient.id) == 1

    async def test_purging_patient_purges_archived_records(self, client, admin, patient, records):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.post(
            f"/archive/patients/{patient.id}/permanent-delete",
            json={"password": PASSWORD},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert await count(ArchivedPatient) == 0
        assert await count(ArchivedConsultation) == 0

    async def test_purge_refused_while_live_records_remain(self, client, admin, patient):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))
        # A record written for the patient after archiving
        async with async_session() as session:
            session.add(MaternityRecord(patient_id=patient.id, pregnancy_number=2))
            await session.commit()

        response = await client.post(
            f"/archive/patients/{patient.id}/permanent-delete",
            json={"password": PASSWORD},
            headers=auth_headers(admin),
        )

        assert response.status_code == 422
        assert await count(ArchivedPatient, id=patient.id) == 1

    async def test_doctor_cannot_purge(self, client, admin, doctor, patient):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.post(
            f"/archive/patients/{patient.id}/permanent-delete",
            json={"password": PASSWORD},
            headers=auth_headers(doctor),
        )

        assert response.status_code == 403

    async def test_purging_patient_removes_their_appointments(self, client, admin, patient, doctor, related):
        """
        GIVEN an archived patient with a completed appointment
        WHEN the admin purges the patient
        THEN the appointment is removed with them
        """
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.post(
            f"/archive/patients/{patient.id}/permanent-delete",
            json={"password": PASSWORD},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert await count(Appointment, patient_id=patient.id) == 0
        async with async_session() as session:
            entry = (await session.execute(
                select(AuditLog).where(AuditLog.action == AuditAction.RECORD_PERMANENTLY_DELETED)
            )).scalar_one()
        assert entry.details["appointments"] == 1

    async def test_non_admin_is_refused_before_password_check(self, client, admin, doctor, patient):
        await client.delete(f"/patients/{patient.id}", headers=auth_headers(admin))

        response = await client.post(
            f"/archive/patients/{patient.id}/permanent-delete",
            json={"password": "not-the-password"},
            headers=auth_headers(doctor),
        )

        assert response.status_code == 403
