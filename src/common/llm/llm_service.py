# src/common/llm/llm_service.py
"""
LLM Service for calling the hosted completion endpoint.

Each call site sends a single prompt together with the JSON schema the reply
must follow, and gets back a validated pydantic model.
"""

import json
import logging
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.common.config import settings
from src.common.errors import StoreError
from src.common.utils.global_messages import GlobalMessages

logger = logging.getLogger(__name__)

OutputModel = TypeVar("OutputModel", bound=BaseModel)


# System prompts per call site
# Use {schema} placeholder for the JSON schema the reply has to match.

SYSTEM_PROMPTS = {
    "health_suggestions": """You are an AI assistant for a City Health Office providing health suggestions based on medical records.
Your suggestions are read by a qualified medical professional, never directly by the patient.

## GUIDELINES:
- Base every suggestion on the records provided
- Give each suggestion a short intervention and the rationale behind it
- Keep the language professional and concise

## OUTPUT FORMAT:
Reply with a single JSON object and nothing else, matching this JSON schema:
{schema}""",

    "pre_diagnosis": """You are an expert medical triage AI assistant for a City Health Office.
Your role is to provide a preliminary analysis of a patient's stated reason for an appointment. This is NOT a diagnosis.
You are providing suggestions to a qualified medical professional (doctor, midwife, or nurse).

## GUIDELINES:
- List possible conditions the provider should consider
- List suggested actions or questions for the provider during the consultation
- Keep the language professional and concise

Example for "High fever for 3 days, body aches, and headache":
{"possible_conditions": ["Influenza", "Dengue Fever", "Bacterial Infection"], "suggested_actions": ["Check patient's temperature and blood pressure.", "Ask about recent travel history.", "Consider ordering a complete blood count (CBC)."]}

## OUTPUT FORMAT:
Reply with a single JSON object and nothing else, matching this JSON schema:
{schema}""",
}


class LLMOutputError(StoreError):
    """The model answered, but not with output matching the requested schema."""

    def __init__(self, detail: str = GlobalMessages.AI_UNAVAILABLE):
        super().__init__(detail=detail)


def extract_json(text: str) -> str:
    """Strip markdown code fences some models wrap around JSON replies."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class LLMService:
    """Service for interacting with the hosted LLM endpoint."""

    def __init__(self, endpoint_url: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize the LLM service.

        Args:
            endpoint_url: Completion endpoint URL. Defaults to settings.LLM_ENDPOINT_URL
            timeout: Request timeout in seconds. Defaults to settings.LLM_TIMEOUT_SECONDS
        """
        self.endpoint_url = endpoint_url or settings.LLM_ENDPOINT_URL
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

    async def generate(
        self,
        messages: list[dict],
        max_tokens: int = 1024,
        temperature: float = 0.3,
        top_p: float = 0.9,
    ) -> dict:
        """
        Generate a response from the LLM.

        Args:
            messages: List of message dicts with 'role' and 'content'
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0-1.0)
            top_p: Nucleus sampling parameter

        Returns:
            Dict with 'response', 'usage', and 'model' keys
        """
        if not self.endpoint_url:
            logger.error("LLM endpoint URL not configured. Set LLM_ENDPOINT_URL in settings.")
            raise StoreError(GlobalMessages.AI_UNAVAILABLE)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint_url,
                    json={
                        "messages": messages,
                        "max_tokens": max_tokens,
                        "temperature": temperature,
                        "top_p": top_p,
                    }
                )
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("LLM call failed: %s", e)
            raise StoreError(GlobalMessages.AI_UNAVAILABLE) from e

    async def generate_structured(
        self,
        prompt: str,
        output_model: Type[OutputModel],
        context: str,
        temperature: float = 0.3,
    ) -> OutputModel:
        """
        Send `prompt` under the system prompt for `context` and validate the reply.

        Raises LLMOutputError when the reply is not valid JSON for `output_model`.
        """
        schema = json.dumps(output_model.model_json_schema())
        system_prompt = SYSTEM_PROMPTS[context].replace("{schema}", schema)
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]

        result = await self.generate(messages=messages, temperature=temperature)
        raw = result.get("response", "") if isinstance(result, dict) else ""

        try:
            return output_model.model_validate_json(extract_json(raw))
        except PydanticValidationError as e:
            logger.warning("LLM output did not match %s: %s", output_model.__name__, e)
            raise LLMOutputError() from e
