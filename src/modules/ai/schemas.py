# src/modules/ai/schemas.py
"""AI suggestion module Pydantic schemas."""

from typing import List

from pydantic import BaseModel, Field


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class HealthSuggestionsRequest(BaseModel):
    mother_consultation_records: str = Field(..., min_length=10)
    maternity_history: str = Field(..., min_length=10)
    baby_health_records: str = Field(..., min_length=10)


class PreDiagnosisRequest(BaseModel):
    reason_for_visit: str = Field("", max_length=500)


# ============================================================================
# RESPONSE SCHEMAS
# Also sent to the model as the shape its reply must follow.
# ============================================================================

class HealthSuggestion(BaseModel):
    intervention: str = Field(..., description="The suggested health intervention.")
    rationale: str = Field(..., description="The rationale behind the suggestion.")


class HealthSuggestionsResponse(BaseModel):
    suggestions: List[HealthSuggestion] = Field(..., description="A list of AI-driven health suggestions.")


class PreDiagnosisResponse(BaseModel):
    possible_conditions: List[str] = Field(
        default_factory=list,
        description="Possible conditions based on the stated reason for visit. This is not a diagnosis.",
    )
    suggested_actions: List[str] = Field(
        default_factory=list,
        description="Suggested actions or questions for the provider to consider during the consultation.",
    )
