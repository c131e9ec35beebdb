# src/modules/admin/admin_service.py
"""Admin-only account management, full backup export and dashboard counts."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.auth_service import create_account, reauthenticate
from src.common.database.database import commit_or_raise
from src.common.errors import NotFound, ValidationError
from src.common.realtime import COLLECTIONS, change_feed, row_to_dict
from src.common.utils.global_messages import GlobalMessages
from src.models.models import (
    Appointment,
    AppointmentStatus,
    ArchivedPatient,
    AuditAction,
    Patient,
    UserRole,
    utcnow,
)
from src.modules.audit import audit_service
from src.policy.context import PolicyContext
from src.policy.resolver import ensure_access
from src.policy.roles import ASSIGNABLE_ROLES, ROLE_FIELDS, Operation, RecordType

from .schemas import AdminUserCreateRequest, DashboardStats

logger = logging.getLogger(__name__)


async def create_user(
    session: AsyncSession,
    context: PolicyContext,
    request: AdminUserCreateRequest,
) -> Patient:
    """Add an account with any assignable role."""
    ensure_access(context, RecordType.PROFILE, Patient(role=request.role), Operation.CREATE, fields=ROLE_FIELDS)
    if request.role not in ASSIGNABLE_ROLES:
        raise ValidationError(GlobalMessages.ROLE_NOT_ASSIGNABLE, field="role")

    user = await create_account(
        session,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        middle_name=request.middle_name,
        role=request.role,
    )
    await audit_service.record(
        context.actor,
        AuditAction.USER_CREATED,
        f"Created {request.role.value} account for {user.name}",
        target_id=user.id,
        target_type="patient",
        details={"email": user.email, "role": request.role.value},
    )
    return user


async def change_role(
    session: AsyncSession,
    context: PolicyContext,
    user_id: UUID,
    role: UserRole,
) -> Tuple[Patient, UserRole]:
    """
    Change a non-admin account's role.

    The change takes effect on the account's next request; a former provider
    keeps their historical appointments but no longer gets provider access.
    """
    user = await session.get(Patient, user_id)
    if user is None:
        raise NotFound(GlobalMessages.USER_NOT_FOUND)
    ensure_access(context, RecordType.PROFILE, user, Operation.UPDATE, fields=ROLE_FIELDS)

    if user.role == UserRole.ADMIN:
        raise ValidationError(GlobalMessages.ADMIN_IMMUTABLE, field="role")
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError(GlobalMessages.ROLE_NOT_ASSIGNABLE, field="role")

    previous = user.role
    user.role = role
    await commit_or_raise(session)
    change_feed.publish("patients")
    logger.info("Role of %s changed from %s to %s", user.id, previous.value, role.value)

    await audit_service.record(
        context.actor,
        AuditAction.ROLE_CHANGED,
        f"Changed role of {user.name} from {previous.value} to {role.value}",
        target_id=user.id,
        target_type="patient",
        details={"from": previous.value, "to": role.value},
    )
    return user, previous


def backup_filename(now: Optional[datetime] = None) -> str:
    """`firebase-backup-2024-05-01T08-30-00-000Z.json` style name."""
    now = now or utcnow()
    stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return "firebase-backup-" + stamp.replace(":", "-").replace(".", "-") + ".json"


async def export_backup(
    session: AsyncSession,
    context: PolicyContext,
    password: str,
) -> Dict[str, Dict[str, Any]]:
    """
    Full export of every collection, keyed by collection name then record id.

    Needs a fresh password confirmation. Password hashes are never exported.
    """
    context = context.with_reauthentication()
    # Role is checked before the password
    ensure_access(context, RecordType.PROFILE, None, Operation.BACKUP)
    reauthenticate(context.actor, password)

    tree: Dict[str, Dict[str, Any]] = {}
    for collection, model in COLLECTIONS.items():
        result = await session.execute(select(model))
        tree[collection] = {str(row.id): row_to_dict(row) for row in result.scalars().all()}

    counts = {collection: len(rows) for collection, rows in tree.items()}
    logger.info("Backup exported by %s", context.actor.id)
    await audit_service.record(
        context.actor,
        AuditAction.DATABASE_BACKUP_DOWNLOADED,
        "Downloaded a full database backup",
        target_type="database",
        details={"counts": counts},
    )
    return tree


async def get_dashboard_stats(session: AsyncSession) -> DashboardStats:
    role_counts = dict(
        (await session.execute(select(Patient.role, func.count(Patient.id)).group_by(Patient.role))).all()
    )
    status_counts = dict(
        (await session.execute(
            select(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status)
        )).all()
    )
    archived = await session.scalar(select(func.count(ArchivedPatient.id)))

    by_status = {status.value: status_counts.get(status, 0) for status in AppointmentStatus}
    return DashboardStats(
        total_patients=role_counts.get(UserRole.PATIENT, 0),
        total_doctors=role_counts.get(UserRole.DOCTOR, 0),
        total_midwives_nurses=role_counts.get(UserRole.MIDWIFE_NURSE, 0),
        total_appointments=sum(by_status.values()),
        appointments_by_status=by_status,
        archived_patients=archived or 0,
    )
