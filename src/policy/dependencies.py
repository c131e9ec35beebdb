# src/policy/dependencies.py

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.database.database import get_db_session
from src.models.models import Patient
from src.policy.context import PolicyContext
from src.policy.relationships import RelationshipIndex
from src.policy.roles import is_provider


async def build_policy_context(session: AsyncSession, actor: Patient) -> PolicyContext:
    """Fresh context for one request; only providers need the relationship snapshot."""
    if is_provider(actor.role):
        relationships = await RelationshipIndex.load(session, actor.id)
    else:
        relationships = RelationshipIndex.empty()
    return PolicyContext(actor=actor, relationships=relationships)


async def get_policy_context(
    current_user: Patient = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PolicyContext:
    return await build_policy_context(db, current_user)
