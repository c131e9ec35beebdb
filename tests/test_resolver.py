"""
Tests for the record visibility resolver.

Pure checks: actors and records are plain objects, no database.
"""
import uuid
from types import SimpleNamespace

import pytest

from src.common.errors import AccessDenied
from src.models.models import UserRole
from src.policy.context import PolicyContext
from src.policy.relationships import RelationshipIndex
from src.policy.resolver import can_access, ensure_access
from src.policy.roles import Operation, RecordType


def actor(role: UserRole):
    return SimpleNamespace(id=uuid.uuid4(), role=role, name=f"{role.value} user")


def consultation(patient_id, doctor_id=None):
    return SimpleNamespace(id=uuid.uuid4(), patient_id=patient_id, doctor_id=doctor_id)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def admin():
    return actor(UserRole.ADMIN)


@pytest.fixture
def doctor():
    return actor(UserRole.DOCTOR)


@pytest.fixture
def patient():
    return actor(UserRole.PATIENT)


@pytest.fixture
def doctor_context(doctor, patient):
    """Doctor with one appointment with `patient`."""
    return PolicyContext(actor=doctor, relationships=RelationshipIndex({(doctor.id, patient.id)}))


class TestAdmin:
    """Admins may do anything, destructive operations only after re-authentication"""

    def test_admin_reads_and_writes_every_record_type(self, admin):
        context = PolicyContext(actor=admin)
        record = consultation(uuid.uuid4())
        for record_type in RecordType:
            for operation in (Operation.READ, Operation.UPDATE, Operation.DELETE, Operation.RESTORE):
                assert can_access(context, record_type, record, operation)

    def test_permanent_delete_requires_reauthentication(self, admin):
        """
        GIVEN an admin session without a fresh password confirmation
        WHEN permanent delete or backup is checked
        THEN it is denied until the context is re-authenticated
        """
        context = PolicyContext(actor=admin)
        record = consultation(uuid.uuid4())

        assert not can_access(context, RecordType.CONSULTATION, record, Operation.PERMANENT_DELETE)
        assert not can_access(context, RecordType.PROFILE, None, Operation.BACKUP)

        confirmed = context.with_reauthentication()
        assert can_access(confirmed, RecordType.CONSULTATION, record, Operation.PERMANENT_DELETE)
        assert can_access(confirmed, RecordType.PROFILE, None, Operation.BACKUP)


class TestPatient:
    """Patients only ever see what they own"""

    def test_patient_reads_own_records_only(self, patient):
        context = PolicyContext(actor=patient)
        own = consultation(patient.id)
        foreign = consultation(uuid.uuid4())

        assert can_access(context, RecordType.CONSULTATION, own, Operation.READ)
        assert not can_access(context, RecordType.CONSULTATION, foreign, Operation.READ)

    def test_patient_edits_demographics_but_never_role(self, patient):
        context = PolicyContext(actor=patient)
        profile = SimpleNamespace(id=patient.id)

        assert can_access(context, RecordType.PROFILE, profile, Operation.UPDATE, fields={"city", "phone_number"})
        assert not can_access(context, RecordType.PROFILE, profile, Operation.UPDATE, fields={"role"})

    def test_patient_concern_cannot_carry_a_diagnosis(self, patient):
        context = PolicyContext(actor=patient)
        concern = consultation(patient.id)

        assert can_access(context, RecordType.CONSULTATION, concern, Operation.CREATE, fields={"notes", "date"})
        assert not can_access(context, RecordType.CONSULTATION, concern, Operation.CREATE, fields={"notes", "diagnosis"})

    def test_patient_cannot_touch_schedules_audit_or_archive(self, patient):
        context = PolicyContext(actor=patient)
        assert not can_access(context, RecordType.SCHEDULE, SimpleNamespace(doctor_id=uuid.uuid4()), Operation.READ)
        assert not can_access(context, RecordType.AUDIT_LOG, SimpleNamespace(user_id=patient.id), Operation.READ)
        assert not can_access(context, RecordType.CONSULTATION, consultation(patient.id), Operation.DELETE)


class TestProvider:
    """Providers reach patient records through appointments"""

    def test_provider_reads_related_patient_records(self, doctor_context, patient):
        for record_type, record in (
            (RecordType.CONSULTATION, consultation(patient.id)),
            (RecordType.MATERNITY, SimpleNamespace(patient_id=patient.id)),
            (RecordType.BABY, SimpleNamespace(mother_id=patient.id)),
            (RecordType.BMI, SimpleNamespace(patient_id=patient.id)),
            (RecordType.PROFILE, SimpleNamespace(id=patient.id)),
        ):
            assert can_access(doctor_context, record_type, record, Operation.READ)

    def test_provider_without_relationship_is_denied(self, doctor_context):
        stranger = uuid.uuid4()
        assert not can_access(doctor_context, RecordType.CONSULTATION, consultation(stranger), Operation.READ)
        assert not can_access(doctor_context, RecordType.PROFILE, SimpleNamespace(id=stranger), Operation.READ)

    def test_provider_never_deletes_or_restores(self, doctor_context, patient):
        record = consultation(patient.id)
        for operation in (Operation.DELETE, Operation.RESTORE, Operation.PERMANENT_DELETE, Operation.BACKUP):
            assert not can_access(doctor_context, RecordType.CONSULTATION, record, operation)

    def test_provider_sees_only_own_appointments_and_schedule(self, doctor_context, doctor, patient):
        own = SimpleNamespace(patient_id=patient.id, doctor_id=doctor.id)
        other = SimpleNamespace(patient_id=patient.id, doctor_id=uuid.uuid4())

        assert can_access(doctor_context, RecordType.APPOINTMENT, own, Operation.CANCEL)
        assert not can_access(doctor_context, RecordType.APPOINTMENT, other, Operation.READ)
        assert can_access(doctor_context, RecordType.SCHEDULE, SimpleNamespace(doctor_id=doctor.id), Operation.READ)
        assert not can_access(doctor_context, RecordType.SCHEDULE, SimpleNamespace(doctor_id=doctor.id), Operation.UPDATE)

    def test_demoted_provider_loses_access(self, doctor, patient):
        """
        GIVEN a doctor with a historical appointment with the patient
        WHEN the account's role becomes patient
        THEN the relationship no longer grants access
        """
        index = RelationshipIndex({(doctor.id, patient.id)})
        demoted = SimpleNamespace(id=doctor.id, role=UserRole.PATIENT, name=doctor.name)
        context = PolicyContext(actor=demoted, relationships=index)

        assert not can_access(context, RecordType.CONSULTATION, consultation(patient.id), Operation.READ)


class TestEnsureAccess:

    def test_raises_access_denied(self, patient):
        with pytest.raises(AccessDenied):
            ensure_access(PolicyContext(actor=patient), RecordType.CONSULTATION, consultation(uuid.uuid4()), Operation.READ)

    def test_decision_is_stable(self, doctor_context, patient):
        record = consultation(patient.id)
        first = can_access(doctor_context, RecordType.CONSULTATION, record, Operation.UPDATE, fields={"diagnosis"})
        second = can_access(doctor_context, RecordType.CONSULTATION, record, Operation.UPDATE, fields={"diagnosis"})
        assert first is second is True
