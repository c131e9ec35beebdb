# common/utils/global_functions.py
from typing import Any, Dict, Iterable
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.errors import NotFound, ValidationError
from src.common.utils.global_messages import GlobalMessages
from src.models.models import Patient, UserRole


async def require_patient(session: AsyncSession, patient_id: UUID) -> Patient:
    """Live account with the patient role that owns clinical records."""
    patient = await session.get(Patient, patient_id)
    if patient is None:
        raise NotFound(GlobalMessages.PATIENT_NOT_FOUND)
    if patient.role != UserRole.PATIENT:
        raise ValidationError("Records can only be kept for patient accounts.", field="patient_id")
    return patient


def submitted_fields(request: BaseModel) -> Dict[str, Any]:
    """Fields the caller actually sent, so partial updates leave the rest alone."""
    return request.model_dump(exclude_unset=True)


def apply_changes(record: Any, changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        setattr(record, key, value)


def column_values(record: Any, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Raw column values of an ORM row, for moving it to a table with the same columns."""
    excluded = set(exclude)
    return {
        attr.key: getattr(record, attr.key)
        for attr in inspect(record).mapper.column_attrs
        if attr.key not in excluded
    }
