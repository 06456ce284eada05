"""
Writing Assistant - outbound adapter to the generation service.

Turns a monitor trigger (or an explicit user request) into a single LLM call.
Stateless: each request is independent, and the response is handed back to
the editor as-is.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.services.behavior_engine.states import CognitiveState, Phase, TriggerReason

from .llm_client import LLMClient
from .policies import StrategyPolicy
from .prompts import FALLBACK_RESPONSE, build_generation_prompt

logger = logging.getLogger(__name__)


@dataclass
class GenerationRequest:
    """
    One generation request, as produced by the monitor's payload builder.
    Enum-valued fields travel as their string values.
    """
    trigger_reason: str
    text_window: str
    current_phase: Optional[str] = None
    cognitive_state: Optional[str] = None
    user_prompt: Optional[str] = None
    idle_duration_seconds: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationRequest":
        known = {
            "trigger_reason", "text_window", "current_phase",
            "cognitive_state", "user_prompt", "idle_duration_seconds",
        }
        return cls(
            trigger_reason=data["trigger_reason"],
            text_window=data["text_window"],
            current_phase=data.get("current_phase"),
            cognitive_state=data.get("cognitive_state"),
            user_prompt=data.get("user_prompt"),
            idle_duration_seconds=data.get("idle_duration_seconds"),
            metadata={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class AssistResponse:
    """Structured response from the writing assistant"""
    message: str
    strategy_id: str
    trigger_reason: str
    used_fallback: bool = False


def _parse_enum(enum_cls, value: Optional[str]):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} value: {value}")
        return None


class WritingAssistant:
    """
    Chooses a strategy for the request, builds the prompt and calls the LLM.

    A failing LLM call never propagates: the writer gets a fixed fallback
    message and the editor keeps working.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None, language: str = "English"):
        self.llm = llm_client or LLMClient()
        self.language = language
        logger.info("WritingAssistant initialized")

    async def generate(self, request: GenerationRequest) -> AssistResponse:
        reason = _parse_enum(TriggerReason, request.trigger_reason) or TriggerReason.USER_PROMPT
        strategy = StrategyPolicy.select(
            reason,
            _parse_enum(Phase, request.current_phase),
            _parse_enum(CognitiveState, request.cognitive_state),
        )

        logger.info(
            f"Generation request - Reason: {reason.value}, Strategy: {strategy.id}, "
            f"Window length: {len(request.text_window)}, Metadata keys: {sorted(request.metadata)}"
        )

        system_prompt, user_prompt = build_generation_prompt(request, strategy, self.language)

        try:
            message = await self.llm.complete(system_prompt, user_prompt)
        except Exception as e:
            logger.error(f"Generation failed, returning fallback: {e}")
            return AssistResponse(
                message=FALLBACK_RESPONSE,
                strategy_id=strategy.id,
                trigger_reason=reason.value,
                used_fallback=True,
            )

        return AssistResponse(
            message=message,
            strategy_id=strategy.id,
            trigger_reason=reason.value,
        )
