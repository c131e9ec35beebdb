# src/modules/ai/ai_controller.py

from fastapi import APIRouter, Depends

from src.common.errors import AccessDenied
from src.common.llm import LLMService
from src.models.models import UserRole
from src.policy.context import PolicyContext
from src.policy.dependencies import get_policy_context

from . import ai_service as service
from .schemas import (
    HealthSuggestionsRequest,
    HealthSuggestionsResponse,
    PreDiagnosisRequest,
    PreDiagnosisResponse,
)

router = APIRouter(prefix="/ai", tags=["AI Suggestions"])


def get_llm_service() -> LLMService:
    return LLMService()


def require_staff(context: PolicyContext = Depends(get_policy_context)) -> PolicyContext:
    """AI suggestions are staff tools; patients never see them."""
    if context.role == UserRole.PATIENT:
        raise AccessDenied()
    return context


@router.post("/health-suggestions", response_model=HealthSuggestionsResponse)
async def health_suggestions(
    request: HealthSuggestionsRequest,
    context: PolicyContext = Depends(require_staff),
    llm: LLMService = Depends(get_llm_service),
):
    """Suggested interventions from a mother's and baby's records."""
    return await service.get_health_suggestions(request, llm)


@router.post("/pre-diagnosis", response_model=PreDiagnosisResponse)
async def pre_diagnosis(
    request: PreDiagnosisRequest,
    context: PolicyContext = Depends(require_staff),
    llm: LLMService = Depends(get_llm_service),
):
    """Conditions and questions to consider for an appointment's reason for visit."""
    return await service.get_pre_diagnosis(request, llm)
