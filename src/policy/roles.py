# src/policy/roles.py
"""Roles, record types, operations and the field groups the resolver reasons about."""

from enum import Enum

from src.models.models import UserRole


class RecordType(str, Enum):
    PROFILE = "profile"
    CONSULTATION = "consultation"
    MATERNITY = "maternity"
    BABY = "baby"
    BMI = "bmi"
    APPOINTMENT = "appointment"
    SCHEDULE = "schedule"
    AUDIT_LOG = "audit_log"


class Operation(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    CANCEL = "cancel"
    DELETE = "delete"
    RESTORE = "restore"
    PERMANENT_DELETE = "permanent_delete"
    BACKUP = "backup"


PROVIDER_ROLES = frozenset({UserRole.DOCTOR, UserRole.MIDWIFE_NURSE})

# Roles that can hold a schedule
SCHEDULE_ROLES = PROVIDER_ROLES

# Roles patients can book appointments with
BOOKABLE_ROLES = frozenset({UserRole.DOCTOR})

# Admin is never reachable through the role-edit path
ASSIGNABLE_ROLES = frozenset({UserRole.DOCTOR, UserRole.MIDWIFE_NURSE, UserRole.PATIENT})

# Records owned by a single patient
PATIENT_OWNED_TYPES = frozenset({
    RecordType.PROFILE,
    RecordType.CONSULTATION,
    RecordType.MATERNITY,
    RecordType.BABY,
    RecordType.BMI,
    RecordType.APPOINTMENT,
})

CLINICAL_RECORD_TYPES = frozenset({
    RecordType.CONSULTATION,
    RecordType.MATERNITY,
    RecordType.BABY,
    RecordType.BMI,
})

# Destructive, irreversible operations that need a fresh password confirmation
REAUTH_OPERATIONS = frozenset({Operation.PERMANENT_DELETE, Operation.BACKUP})

CLINICAL_FIELDS = frozenset({"diagnosis", "treatment_plan"})
ROLE_FIELDS = frozenset({"role"})
DEMOGRAPHIC_FIELDS = frozenset({
    "first_name",
    "middle_name",
    "last_name",
    "date_of_birth",
    "phone_number",
    "city",
    "province",
    "sex",
    "civil_status",
    "religion",
    "ethnicity",
    "nationality",
    "highest_education",
    "occupation",
    "monthly_income",
    "philhealth_member",
    "philhealth_number",
    "health_facility_member",
    "household_member",
    "blood_type",
    "remarks",
})


def is_provider(role: UserRole) -> bool:
    return role in PROVIDER_ROLES
