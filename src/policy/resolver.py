# src/policy/resolver.py
"""
Record visibility resolver.

Every read and write in the API is decided here, first match wins:

1. admins may do anything; backup and permanent delete additionally need a
   fresh password confirmation on the context
2. patients may touch patient-owned records whose owner is themselves, and
   only for reading plus a few self-service writes
3. doctors and midwives/nurses reach clinical records through the
   relationship index, their own appointments, schedule and audit entries
4. everything else is denied

`can_access` only looks at its arguments, so calling it twice with the same
inputs always gives the same answer.
"""

from typing import Any, Iterable, Optional
from uuid import UUID

from src.common.errors import AccessDenied
from src.models.models import UserRole
from src.policy.context import PolicyContext
from src.policy.roles import (
    CLINICAL_FIELDS,
    CLINICAL_RECORD_TYPES,
    DEMOGRAPHIC_FIELDS,
    PATIENT_OWNED_TYPES,
    REAUTH_OPERATIONS,
    Operation,
    RecordType,
    is_provider,
)

_OWNER_ATTRIBUTES = {
    RecordType.PROFILE: "id",
    RecordType.CONSULTATION: "patient_id",
    RecordType.MATERNITY: "patient_id",
    RecordType.BMI: "patient_id",
    RecordType.APPOINTMENT: "patient_id",
    RecordType.BABY: "mother_id",
}


def owner_id(record_type: RecordType, record: Any) -> Optional[UUID]:
    """Id of the patient that owns the record, or None for types without an owner."""
    attribute = _OWNER_ATTRIBUTES.get(record_type)
    if attribute is None:
        return None
    return getattr(record, attribute, None)


def _patient_may(record_type: RecordType, operation: Operation, fields: frozenset) -> bool:
    if operation == Operation.READ:
        return True
    if record_type == RecordType.PROFILE and operation == Operation.UPDATE:
        return fields <= DEMOGRAPHIC_FIELDS
    if record_type == RecordType.CONSULTATION and operation == Operation.CREATE:
        # A concern submission, waiting for a provider's response
        return not (fields & CLINICAL_FIELDS)
    if record_type == RecordType.APPOINTMENT and operation in (Operation.CREATE, Operation.CANCEL):
        return True
    return False


def _provider_may(
    context: PolicyContext,
    record_type: RecordType,
    record: Any,
    operation: Operation,
    fields: frozenset,
) -> bool:
    actor_id = context.actor.id

    if record_type in CLINICAL_RECORD_TYPES:
        if operation not in (Operation.READ, Operation.CREATE, Operation.UPDATE):
            return False
        return context.relationships.has_relationship(actor_id, owner_id(record_type, record))

    if record_type == RecordType.PROFILE:
        if operation == Operation.READ:
            allowed = True
        elif operation == Operation.UPDATE:
            allowed = fields <= DEMOGRAPHIC_FIELDS
        else:
            return False
        if not allowed:
            return False
        if record.id == actor_id:
            return True
        return context.relationships.has_relationship(actor_id, record.id)

    if record_type == RecordType.APPOINTMENT:
        if operation not in (Operation.READ, Operation.UPDATE, Operation.CANCEL):
            return False
        return getattr(record, "doctor_id", None) == actor_id

    if record_type == RecordType.SCHEDULE:
        return operation == Operation.READ and getattr(record, "doctor_id", None) == actor_id

    if record_type == RecordType.AUDIT_LOG:
        return operation == Operation.READ and getattr(record, "user_id", None) == actor_id

    return False


def can_access(
    context: PolicyContext,
    record_type: RecordType,
    record: Any,
    operation: Operation,
    fields: Iterable[str] = (),
) -> bool:
    """
    Decide whether the context's actor may perform `operation` on `record`.

    `fields` names the attributes a write touches; it narrows self-service
    edits to the groups a role is allowed to change.
    """
    role = context.actor.role
    fields = frozenset(fields)

    if role == UserRole.ADMIN:
        if operation in REAUTH_OPERATIONS:
            return context.reauthenticated
        return True

    if role == UserRole.PATIENT:
        if record_type not in PATIENT_OWNED_TYPES:
            return False
        if owner_id(record_type, record) != context.actor.id:
            return False
        return _patient_may(record_type, operation, fields)

    if is_provider(role):
        return _provider_may(context, record_type, record, operation, fields)

    return False


def ensure_access(
    context: PolicyContext,
    record_type: RecordType,
    record: Any,
    operation: Operation,
    fields: Iterable[str] = (),
) -> None:
    """Raise AccessDenied unless `can_access` allows the operation."""
    if not can_access(context, record_type, record, operation, fields):
        raise AccessDenied()
