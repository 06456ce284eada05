"""
Assist API endpoint - generation requests from the editor.

Receives the body built by the monitor (trigger payload plus caller metadata)
and returns the generation service's answer.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
import logging

from ...config import get_settings
from ...services.ai_orchestrator import GenerationRequest, LLMClient, WritingAssistant

logger = logging.getLogger(__name__)


def _build_assistant() -> Optional[WritingAssistant]:
    settings = get_settings()
    api_key = settings.GROQ_API_KEY if settings.LLM_PROVIDER == "groq" else settings.OPENAI_API_KEY
    try:
        llm = LLMClient(api_key=api_key, model=settings.LLM_MODEL, provider=settings.LLM_PROVIDER)
        return WritingAssistant(llm, language=settings.RESPONSE_LANGUAGE)
    except Exception as e:
        logger.error(f"Failed to initialize WritingAssistant: {e}")
        return None


# Initialize assistant (singleton)
assistant = _build_assistant()

router = APIRouter(prefix="/api/assist", tags=["assist"])


# --- REQUEST/RESPONSE MODELS ---

class GenerateRequest(BaseModel):
    """Generation request as built by the monitor's trigger endpoint"""
    trigger_reason: str = Field(..., description="STRUGGLE_DETECTION, IDEA_SPARK or USER_PROMPT")
    text_window: str = Field(
        ...,
        description="Text around the cursor with the [CURSOR] marker",
        max_length=2000,
    )
    current_phase: Optional[str] = Field(None, description="Planning, Translating or Reviewing")
    cognitive_state: Optional[str] = Field(None, description="Flow or Block")
    user_prompt: Optional[str] = Field(None, description="Writer's explicit request", max_length=500)
    idle_duration_seconds: Optional[float] = Field(None, ge=0)

    # Caller metadata travels as extra top-level keys, as built by the monitor
    model_config = ConfigDict(extra="allow")


class GenerateResponse(BaseModel):
    message: str = Field(..., description="Raw text from the generation service")
    strategy_id: str = Field(..., description="Help strategy used for the prompt")
    trigger_reason: str
    timestamp: datetime = Field(default_factory=datetime.now)


# --- ENDPOINTS ---

@router.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest):
    """
    Ask the generation service for help at the cursor.

    LLM failures degrade to a fallback message rather than an error.
    """
    if not assistant:
        raise HTTPException(
            status_code=503,
            detail="Writing assistant is unavailable. Check LLM API configuration."
        )

    try:
        response = await assistant.generate(GenerationRequest.from_dict(request.model_dump()))
    except Exception as e:
        logger.error(f"Error processing generation request: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to process your request. Please try again."
        )

    return GenerateResponse(
        message=response.message,
        strategy_id=response.strategy_id,
        trigger_reason=response.trigger_reason,
    )


@router.get("/health")
async def health_check():
    """Check if the writing assistant is operational"""
    if not assistant:
        return {
            "status": "unavailable",
            "reason": "WritingAssistant not initialized"
        }

    return {
        "status": "operational",
        "provider": assistant.llm.provider,
        "model": assistant.llm.model,
    }
