"""
AI Orchestrator Module - Writing Assistant for the Editor

Turns monitor triggers and explicit user requests into generation-service calls,
picking a help strategy from the writer's phase and state.
"""

from .assistant import AssistResponse, GenerationRequest, WritingAssistant
from .llm_client import LLMClient

__all__ = ["WritingAssistant", "GenerationRequest", "AssistResponse", "LLMClient"]
