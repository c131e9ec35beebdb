"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum types hold member names, the way SQLAlchemy stores them
userrole_enum = postgresql.ENUM('ADMIN', 'DOCTOR', 'MIDWIFE_NURSE', 'PATIENT', name='userrole', create_type=False)
appointmentstatus_enum = postgresql.ENUM(
    'SCHEDULED', 'COMPLETED', 'CANCELLED_BY_PATIENT', 'CANCELLED_BY_DOCTOR', 'CANCELLED_BY_ADMIN',
    name='appointmentstatus', create_type=False,
)
consultationsubject_enum = postgresql.ENUM('MOTHER', 'BABY', name='consultationsubject', create_type=False)
auditaction_enum = postgresql.ENUM(
    'USER_CREATED', 'ROLE_CHANGED', 'RECORD_ARCHIVED', 'RECORD_RESTORED', 'RECORD_PERMANENTLY_DELETED',
    'DATABASE_BACKUP_DOWNLOADED', 'SCHEDULE_UPDATED', 'APPOINTMENT_CANCELLED', 'APPOINTMENT_COMPLETED',
    name='auditaction', create_type=False,
)
ENUMS = (userrole_enum, appointmentstatus_enum, consultationsubject_enum, auditaction_enum)


def timestamp_columns():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def archive_columns():
    return [
        sa.Column('archived_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('archived_by_id', sa.Uuid(), nullable=True),
        sa.Column('archived_with_id', sa.Uuid(), nullable=True),
    ]


def patient_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', userrole_enum, nullable=False),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('middle_name', sa.String(length=50), nullable=True),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('phone_number', sa.String(length=30), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('sex', sa.String(length=10), nullable=True),
        sa.Column('civil_status', sa.String(length=50), nullable=True),
        sa.Column('religion', sa.String(length=100), nullable=True),
        sa.Column('ethnicity', sa.String(length=100), nullable=True),
        sa.Column('nationality', sa.String(length=100), nullable=True),
        sa.Column('highest_education', sa.String(length=100), nullable=True),
        sa.Column('occupation', sa.String(length=100), nullable=True),
        sa.Column('monthly_income', sa.String(length=50), nullable=True),
        sa.Column('philhealth_member', sa.String(length=3), nullable=True),
        sa.Column('philhealth_number', sa.String(length=50), nullable=True),
        sa.Column('health_facility_member', sa.String(length=3), nullable=True),
        sa.Column('household_member', sa.String(length=3), nullable=True),
        sa.Column('blood_type', sa.String(length=5), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *timestamp_columns(),
    ]


def consultation_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=True),
        sa.Column('appointment_id', sa.Uuid(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('treatment_plan', sa.Text(), nullable=True),
        sa.Column('subject_type', consultationsubject_enum, nullable=False),
        sa.Column('baby_id', sa.Uuid(), nullable=True),
        *timestamp_columns(),
    ]


def maternity_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('pregnancy_number', sa.Integer(), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('outcome', sa.Text(), nullable=True),
        sa.Column('complications', sa.Text(), nullable=True),
        *timestamp_columns(),
    ]


def baby_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('mother_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=False),
        sa.Column('birth_weight', sa.String(length=50), nullable=True),
        sa.Column('birth_length', sa.String(length=50), nullable=True),
        sa.Column('apgar_score', sa.String(length=20), nullable=True),
        sa.Column('vaccinations', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('checkups', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *timestamp_columns(),
    ]


def bmi_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('weight_kg', sa.Float(), nullable=False),
        sa.Column('height_m', sa.Float(), nullable=False),
        sa.Column('bmi', sa.Float(), nullable=False),
        sa.Column('recorded_by_id', sa.Uuid(), nullable=True),
        sa.Column('recorded_by_name', sa.String(length=160), nullable=True),
        *timestamp_columns(),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    # Accounts
    op.create_table('patients', *patient_columns(), sa.PrimaryKeyConstraint('id'))
    op.create_index('uq_patients_email', 'patients', ['email'], unique=True)

    op.create_table('archived_patients', *patient_columns(), *archive_columns(), sa.PrimaryKeyConstraint('id'))
    op.create_index('idx_archived_patients_email', 'archived_patients', ['email'])
    op.create_index(op.f('ix_archived_patients_archived_with_id'), 'archived_patients', ['archived_with_id'])

    # Clinical records, live and archived
    for table, columns, owner in (
        ('consultations', consultation_columns, 'patient_id'),
        ('maternity_records', maternity_columns, 'patient_id'),
        ('baby_records', baby_columns, 'mother_id'),
        ('bmi_records', bmi_columns, 'patient_id'),
    ):
        op.create_table(table, *columns(), sa.PrimaryKeyConstraint('id'))
        op.create_index(op.f(f'ix_{table}_{owner}'), table, [owner])

        archived = f'archived_{table}'
        op.create_table(archived, *columns(), *archive_columns(), sa.PrimaryKeyConstraint('id'))
        op.create_index(op.f(f'ix_{archived}_{owner}'), archived, [owner])
        op.create_index(op.f(f'ix_{archived}_archived_with_id'), archived, ['archived_with_id'])

    # Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('appointment_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('appointment_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('status', appointmentstatus_enum, nullable=False),
        sa.Column('reason_for_visit', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_by_role', userrole_enum, nullable=True),
        sa.Column('cancelled_by_id', sa.Uuid(), nullable=True),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_appointments_patient_id'), 'appointments', ['patient_id'])
    op.create_index(op.f('ix_appointments_doctor_id'), 'appointments', ['doctor_id'])
    op.create_index('idx_appointments_doctor_start', 'appointments', ['doctor_id', 'appointment_start'])
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['doctor_id', 'appointment_start'],
        unique=True,
        postgresql_where=sa.text("status IN ('SCHEDULED', 'COMPLETED')"),
    )

    op.create_table(
        'doctor_schedules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('working_hours', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('default_slot_duration_minutes', sa.Integer(), nullable=False),
        sa.Column('notice_period_hours', sa.Integer(), nullable=False),
        sa.Column('unavailable_dates', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_doctor_schedules_doctor_id'), 'doctor_schedules', ['doctor_id'], unique=True)

    # Audit
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('user_name', sa.String(length=160), nullable=False),
        sa.Column('user_role', userrole_enum, nullable=False),
        sa.Column('action', auditaction_enum, nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=True),
        sa.Column('target_type', sa.String(length=50), nullable=True),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    op.create_index('idx_audit_logs_user', 'audit_logs', ['user_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('doctor_schedules')
    op.drop_table('appointments')
    for table in ('bmi_records', 'baby_records', 'maternity_records', 'consultations'):
        op.drop_table(f'archived_{table}')
        op.drop_table(table)
    op.drop_table('archived_patients')
    op.drop_table('patients')

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
