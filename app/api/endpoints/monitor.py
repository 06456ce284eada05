"""
FastAPI endpoints for behavioral monitoring of editing sessions.

The editor streams raw key events and content snapshots; the backend keeps one
WritingMonitor per session, runs its decision and flush timers, and queues
trigger payloads for the editor to pick up.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from ...services.behavior_engine.payload_builder import build_generation_request
from ...services.behavior_engine.states import TriggerReason
from ...services.behavior_engine.trigger_engine import TriggerPayload
from ...services.session_runtime import MonitorSession, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monitor", tags=["monitor"])


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def _get_session(registry: SessionRegistry, session_id: str) -> MonitorSession:
    try:
        return registry.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")


# --- REQUEST/RESPONSE MODELS ---

class CreateSessionRequest(BaseModel):
    log_session_id: Optional[str] = Field(
        None,
        description="Destination for shipped keystroke logs (may be set later)"
    )


class SessionResponse(BaseModel):
    session_id: str
    log_session_id: Optional[str] = None
    running: bool


class InputEventRequest(BaseModel):
    """One key-down (or IME composition-end) event"""
    key: str = Field(..., description="Raw key identifier, e.g. 'a', 'Backspace', 'Enter'", min_length=1)


class ContentUpdateRequest(BaseModel):
    """Full document snapshot after an edit"""
    text: str = Field(..., description="Full document text")
    cursor_offset: int = Field(..., description="Caret offset; clamped to the text length")


class ManualTriggerRequest(BaseModel):
    user_prompt: str = Field(..., description="The writer's explicit request")
    mask_length: Optional[int] = Field(
        None,
        ge=0,
        description="Chars just before the cursor to hide from the context window"
    )
    replacement_text: Optional[str] = Field(
        None,
        description="Text shown in place of the masked chars"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keys for the generation request; cannot override core keys"
    )

    @model_validator(mode="after")
    def check_mask_pair(self) -> "ManualTriggerRequest":
        if (self.mask_length is None) != (self.replacement_text is None):
            raise ValueError("mask_length and replacement_text must be given together")
        return self


class ExtendCooldownRequest(BaseModel):
    seconds: float = Field(..., ge=0, description="Seconds from now the trigger stays suppressed")


class LogSessionRequest(BaseModel):
    log_session_id: str = Field(..., min_length=1)


class MetricsResponse(BaseModel):
    typing_rate: float = Field(..., description="Chars per minute over the whole session")
    edit_ratio: float = Field(..., description="EDIT share of the last 30 events")
    revision_ratio: float = Field(..., description="Net-contribution ratio over recent keystrokes")
    pause_duration: int = Field(..., description="Whole seconds since the last action")
    doc_length: int
    cursor_position: int
    current_burst_length: int
    last_burst_length: int
    immediate_revision_count: int
    distant_revision_count: int
    total_chars_typed: int
    total_active_seconds: float
    total_pause_seconds: float
    phase: str
    cognitive_state: str
    timestamp: datetime = Field(default_factory=datetime.now)


class PhaseTransitionModel(BaseModel):
    timestamp: float
    from_phase: str
    to_phase: str


class TriggerPayloadModel(BaseModel):
    current_phase: str
    cognitive_state: str
    idle_duration_seconds: float
    recent_phase_transitions: List[PhaseTransitionModel]
    text_window: str
    trigger_reason: str
    user_prompt: Optional[str] = None


class StatusResponse(BaseModel):
    triggered: bool
    payload: Optional[TriggerPayloadModel] = None


class ManualTriggerResponse(BaseModel):
    payload: TriggerPayloadModel
    generation_request: Dict[str, Any] = Field(
        ...,
        description="Body ready to POST to /api/assist/generate"
    )


class CooldownResponse(BaseModel):
    kind: TriggerReason
    next_available: float


class CooldownStatus(BaseModel):
    next_available: float = Field(..., description="Epoch seconds; 0 when the kind never fired")
    eligible: bool = Field(..., description="Whether a trigger of this kind could fire now")


def _payload_model(payload: TriggerPayload) -> TriggerPayloadModel:
    return TriggerPayloadModel(**payload.to_dict())


# --- ENDPOINTS ---

@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    body: Optional[CreateSessionRequest] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    """Start monitoring a new editing session (starts its timers)."""
    log_session_id = body.log_session_id if body else None
    session = registry.create(log_session_id=log_session_id)
    return SessionResponse(
        session_id=session.session_id,
        log_session_id=session.log_session_id,
        running=session.running,
    )


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Tear down a session: stop deciding, flush remaining logs, stop flushing."""
    _get_session(registry, session_id)
    await registry.close(session_id)


@router.post("/sessions/{session_id}/reset", response_model=MetricsResponse)
async def reset_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    session.monitor.reset_session()
    session.pending_triggers.clear()
    return MetricsResponse(**session.monitor.metrics().to_dict())


@router.post("/sessions/{session_id}/events", status_code=204)
async def post_input_event(
    session_id: str,
    event: InputEventRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    session = _get_session(registry, session_id)
    session.monitor.on_input_event(event.key)


@router.post("/sessions/{session_id}/content", status_code=204)
async def post_content(
    session_id: str,
    update: ContentUpdateRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    session = _get_session(registry, session_id)
    session.monitor.update_content(update.text, update.cursor_offset)


@router.get("/sessions/{session_id}/metrics", response_model=MetricsResponse)
async def get_metrics(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = _get_session(registry, session_id)
    return MetricsResponse(**session.monitor.metrics().to_dict())


@router.get("/sessions/{session_id}/triggers", response_model=List[TriggerPayloadModel])
async def drain_triggers(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Payloads fired by the decision tick since the last call (consumed once)."""
    session = _get_session(registry, session_id)
    return [_payload_model(p) for p in session.drain_triggers()]


@router.post("/sessions/{session_id}/status", response_model=StatusResponse)
async def check_status(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Run one decision immediately instead of waiting for the next tick."""
    session = _get_session(registry, session_id)
    payload = session.monitor.check_status()
    if payload is None:
        return StatusResponse(triggered=False)
    return StatusResponse(triggered=True, payload=_payload_model(payload))


@router.post("/sessions/{session_id}/trigger", response_model=ManualTriggerResponse)
async def manual_trigger(
    session_id: str,
    body: ManualTriggerRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Explicit user request. Ignores thresholds and cooldowns."""
    session = _get_session(registry, session_id)
    monitor = session.monitor

    if body.replacement_text is not None:
        payload = monitor.manual_trigger_with_replacement(
            body.user_prompt, body.mask_length, body.replacement_text
        )
    else:
        payload = monitor.manual_trigger(body.user_prompt)

    logger.info(f"Manual trigger - Session: {session_id}, Prompt length: {len(body.user_prompt)}")

    return ManualTriggerResponse(
        payload=_payload_model(payload),
        generation_request=build_generation_request(payload, body.metadata),
    )


@router.post("/sessions/{session_id}/cooldowns/{kind}/extend", response_model=CooldownResponse)
async def extend_cooldown(
    session_id: str,
    kind: TriggerReason,
    body: ExtendCooldownRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Suppress a trigger kind, e.g. while a suggestion is on screen."""
    session = _get_session(registry, session_id)
    next_available = session.monitor.extend_cooldown(kind, body.seconds)
    return CooldownResponse(kind=kind, next_available=next_available)


@router.get("/sessions/{session_id}/cooldowns", response_model=Dict[str, CooldownStatus])
async def get_cooldowns(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Cooldown state per trigger kind. Reading does not consume eligibility."""
    session = _get_session(registry, session_id)
    cooldowns = session.monitor.cooldowns
    return {
        kind.value: CooldownStatus(
            next_available=cooldowns.next_available(kind),
            eligible=cooldowns.is_eligible(kind),
        )
        for kind in TriggerReason
    }


@router.delete("/sessions/{session_id}/cooldowns/{kind}", status_code=204)
async def reset_cooldown(
    session_id: str,
    kind: TriggerReason,
    registry: SessionRegistry = Depends(get_registry),
):
    session = _get_session(registry, session_id)
    session.monitor.reset_cooldown(kind)


@router.put("/sessions/{session_id}/log-session", response_model=SessionResponse)
async def set_log_session(
    session_id: str,
    body: LogSessionRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Attach the log destination; buffered records ship on the next flush tick."""
    session = _get_session(registry, session_id)
    session.log_session_id = body.log_session_id
    return SessionResponse(
        session_id=session.session_id,
        log_session_id=session.log_session_id,
        running=session.running,
    )


@router.get("/health")
async def health_check(registry: SessionRegistry = Depends(get_registry)):
    """Check if the monitoring service is operational"""
    return {
        "status": "operational",
        "active_sessions": len(registry),
        "log_sink": "configured" if registry.sink is not None else "none",
    }
