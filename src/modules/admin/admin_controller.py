# src/modules/admin/admin_controller.py
"""Admin controller: user management, backup download and dashboard."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.schemas import PasswordConfirmation, UserResponse
from src.common.database.database import get_db_session
from src.common.errors import AccessDenied
from src.models.models import UserRole
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import admin_service as service
from .schemas import AdminUserCreateRequest, DashboardStats, RoleChangeRequest, RoleChangeResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


def require_admin(context: PolicyContext = Depends(get_policy_context)) -> PolicyContext:
    if context.role != UserRole.ADMIN:
        raise AccessDenied()
    return context


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: AdminUserCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """Add a patient, doctor or midwife/nurse account."""
    return await service.create_user(db, context, request)


@router.put("/users/{user_id}/role", response_model=RoleChangeResponse)
async def change_role(
    user_id: UUID,
    request: RoleChangeRequest,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    user, previous = await service.change_role(db, context, user_id, request.role)
    return RoleChangeResponse(user=UserResponse.model_validate(user), previous_role=previous)


@router.post("/backup")
async def download_backup(
    request: PasswordConfirmation,
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(get_policy_context),
):
    """
    Download every collection as one JSON document.

    Requires the admin's password again, even with a valid session.
    """
    tree = await service.export_backup(db, context, request.password)
    filename = service.backup_filename()
    return JSONResponse(
        content=tree,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    db: AsyncSession = Depends(get_db_session),
    context: PolicyContext = Depends(require_admin),
):
    return await service.get_dashboard_stats(db)
