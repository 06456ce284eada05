"""
Lightweight prompt template system for token-efficient generation requests.
No external dependencies - simple string formatting with validation.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .policies import Strategy

if TYPE_CHECKING:
    from .assistant import GenerationRequest


@dataclass
class PromptTemplate:
    """Simple template with variable injection"""
    system: str
    user: str

    def format(self, **kwargs) -> tuple[str, str]:
        """Format both system and user prompts with provided variables"""
        try:
            system_msg = self.system.format(**kwargs)
            user_msg = self.user.format(**kwargs)
            return system_msg, user_msg
        except KeyError as e:
            raise ValueError(f"Missing required template variable: {e}")


# --- CORE PROMPT TEMPLATES ---

WRITING_ASSISTANT_BASE = PromptTemplate(
    system="""You are a writing assistant embedded in a text editor.

STRICT RULES:
- Never rewrite the whole text; work only around the [CURSOR] marker
- Keep suggestions short and in the writer's own voice
- Bracketed tags such as [REFINE: ...] or [EXPAND: ...] mark what the writer wants help with
- Respond in {language}

Context:
- Writing phase: {phase}
- Writer state: {behavioral_context}

{instruction}""",
    user="""Text around the cursor:
---
{text_window}
---
{request_line}"""
)


# State-specific augmentations (token-efficient)
STATE_ADJUSTMENTS = {
    "STRUGGLE_DETECTION": "\nThe writer keeps deleting their own text. Be encouraging and concrete.",
    "IDEA_SPARK": "\nThe writer has gone quiet. Offer momentum, not corrections.",
}


def build_generation_prompt(
    request: "GenerationRequest",
    strategy: Strategy,
    language: str = "English",
) -> tuple[str, str]:
    """
    Build a context-aware generation prompt.

    Only includes state information that changes the answer.
    """
    behavioral_parts = []

    if request.cognitive_state:
        behavioral_parts.append(f"Cognitive: {request.cognitive_state}")

    if request.idle_duration_seconds is not None and request.idle_duration_seconds >= 5:
        behavioral_parts.append(f"Idle for {int(request.idle_duration_seconds)}s")

    behavioral_context = ", ".join(behavioral_parts) if behavioral_parts else "Normal engagement"

    request_line = (
        f"Writer's request: {request.user_prompt}" if request.user_prompt
        else "Offer help suited to the situation above."
    )

    system_prompt, user_msg = WRITING_ASSISTANT_BASE.format(
        language=language,
        phase=request.current_phase or "Unknown",
        behavioral_context=behavioral_context,
        instruction=strategy.instruction,
        text_window=request.text_window,
        request_line=request_line,
    )

    if request.trigger_reason in STATE_ADJUSTMENTS:
        system_prompt += STATE_ADJUSTMENTS[request.trigger_reason]

    return system_prompt, user_msg


FALLBACK_RESPONSE = (
    "I'm having trouble coming up with suggestions right now. "
    "Keep writing, or try asking again in a moment."
)
