"""LLM module for the hosted completion endpoint."""

from .llm_service import LLMOutputError, LLMService

__all__ = ["LLMOutputError", "LLMService"]
