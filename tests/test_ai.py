"""
Tests for the AI suggestion endpoints.

The completion endpoint is never called; `LLMService.generate` is patched to
return canned replies.
"""
import json

import pytest

from src.common.llm import LLMService
from src.common.llm.llm_service import extract_json
from src.main import app
from src.modules.ai.ai_controller import get_llm_service

from tests.conftest import auth_headers

RECORDS = {
    "mother_consultation_records": "2024-05-06: routine prenatal visit, BP 120/80.",
    "maternity_history": "Pregnancy 1: live birth, no complications.",
    "baby_health_records": "Born 2024-01-15, BCG given 2024-01-16.",
}


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def llm_reply(monkeypatch):
    """Set the raw text the model will answer with; records every prompt sent."""
    state = {"reply": "", "calls": []}

    async def fake_generate(self, messages, **kwargs):
        state["calls"].append(messages)
        return {"response": state["reply"], "usage": {}, "model": "test"}

    monkeypatch.setattr(LLMService, "generate", fake_generate)
    app.dependency_overrides[get_llm_service] = lambda: LLMService(endpoint_url="http://llm.test/generate")
    yield state
    app.dependency_overrides.pop(get_llm_service, None)


class TestPreDiagnosis:

    async def test_blank_reason_skips_the_model(self, client, doctor, llm_reply):
        response = await client.post("/ai/pre-diagnosis", json={"reason_for_visit": "   "}, headers=auth_headers(doctor))

        assert response.status_code == 200
        assert response.json() == {"possible_conditions": [], "suggested_actions": []}
        assert llm_reply["calls"] == []

    async def test_reply_is_validated_against_the_schema(self, client, midwife, llm_reply):
        """
        GIVEN the model answers with fenced JSON
        WHEN a midwife asks for a pre-diagnosis
        THEN the parsed conditions and actions are returned
        """
        llm_reply["reply"] = "```json\n" + json.dumps({
            "possible_conditions": ["Influenza", "Dengue Fever"],
            "suggested_actions": ["Check temperature."],
        }) + "\n```"

        response = await client.post(
            "/ai/pre-diagnosis",
            json={"reason_for_visit": "High fever for 3 days"},
            headers=auth_headers(midwife),
        )

        assert response.status_code == 200
        assert response.json()["possible_conditions"] == ["Influenza", "Dengue Fever"]
        system, user = llm_reply["calls"][0]
        assert "possible_conditions" in system["content"]
        assert user["content"] == "Reason for Visit: High fever for 3 days"

    async def test_invalid_reply_is_unavailable(self, client, doctor, llm_reply):
        llm_reply["reply"] = "I think it might be the flu."

        response = await client.post(
            "/ai/pre-diagnosis", json={"reason_for_visit": "Fever"}, headers=auth_headers(doctor)
        )

        assert response.status_code == 503

    async def test_patients_cannot_use_ai(self, client, patient, llm_reply):
        response = await client.post(
            "/ai/pre-diagnosis", json={"reason_for_visit": "Fever"}, headers=auth_headers(patient)
        )

        assert response.status_code == 403


class TestHealthSuggestions:

    async def test_suggestions_are_returned(self, client, doctor, llm_reply):
        llm_reply["reply"] = json.dumps({
            "suggestions": [{"intervention": "Iron supplements", "rationale": "Low hemoglobin noted."}]
        })

        response = await client.post("/ai/health-suggestions", json=RECORDS, headers=auth_headers(doctor))

        assert response.status_code == 200
        assert response.json()["suggestions"][0]["intervention"] == "Iron supplements"
        assert "Maternity History: Pregnancy 1" in llm_reply["calls"][0][1]["content"]

    async def test_unconfigured_endpoint_is_unavailable(self, client, doctor):
        response = await client.post("/ai/health-suggestions", json=RECORDS, headers=auth_headers(doctor))
        assert response.status_code == 503


class TestExtractJson:

    def test_plain_json_is_untouched(self):
        assert extract_json('  {"a": 1} ') == '{"a": 1}'

    def test_code_fences_are_stripped(self):
        assert extract_json('```json\n{"a": 1}\n```') == '{"a": 1}'
