# src/modules/ai/ai_service.py
"""AI suggestions for providers. Output is advisory, never a diagnosis."""

from src.common.llm import LLMService

from .schemas import (
    HealthSuggestionsRequest,
    HealthSuggestionsResponse,
    PreDiagnosisRequest,
    PreDiagnosisResponse,
)


async def get_health_suggestions(
    request: HealthSuggestionsRequest,
    llm: LLMService,
) -> HealthSuggestionsResponse:
    prompt = (
        f"Mother's Consultation Records: {request.mother_consultation_records}\n"
        f"Maternity History: {request.maternity_history}\n"
        f"Baby Health Records: {request.baby_health_records}\n\n"
        "Provide a list of potential health interventions and the rationale behind each suggestion."
    )
    return await llm.generate_structured(prompt, HealthSuggestionsResponse, context="health_suggestions")


async def get_pre_diagnosis(
    request: PreDiagnosisRequest,
    llm: LLMService,
) -> PreDiagnosisResponse:
    # Nothing to analyse, so the model is not called
    if not request.reason_for_visit.strip():
        return PreDiagnosisResponse(possible_conditions=[], suggested_actions=[])

    prompt = f"Reason for Visit: {request.reason_for_visit.strip()}"
    return await llm.generate_structured(prompt, PreDiagnosisResponse, context="pre_diagnosis")
