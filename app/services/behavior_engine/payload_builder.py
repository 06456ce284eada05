"""
Bounded context windows for the generation service.

The window is centered on the cursor with more history before it than after
(writers look back more than forward when stuck), which also caps request
size.
"""

from typing import Any, Dict, Optional

from app.services.behavior_engine.trigger_engine import TriggerPayload

CURSOR_MARKER = "[CURSOR]"
_INSERTED_MARKER = f" {CURSOR_MARKER} "

DEFAULT_BEFORE = 500
DEFAULT_AFTER = 200


def build_text_window(
    text: str,
    cursor: int,
    before: int = DEFAULT_BEFORE,
    after: int = DEFAULT_AFTER,
    mask_length: int = 0,
    replacement: Optional[str] = None,
) -> str:
    """
    Return text[cursor-before : cursor+after] with the cursor marker spliced in.

    With `replacement`, the `mask_length` chars right before the cursor are
    excised (clamped to the window start) and `replacement` is spliced in,
    padded with single spaces. The splice point comes from the cursor offset,
    never from searching the text, so a marker literal typed by the writer
    cannot move it.
    """
    cursor = max(0, min(cursor, len(text)))
    start_pos = max(0, cursor - before)
    end_pos = min(len(text), cursor + after)
    chunk = text[start_pos:end_pos]
    relative = cursor - start_pos

    prefix = chunk[:relative]
    if replacement is not None:
        cut = max(0, relative - max(0, mask_length))
        prefix = prefix[:cut] + f" {replacement} "
    return prefix + _INSERTED_MARKER + chunk[relative:]


def build_generation_request(
    payload: TriggerPayload,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Request body for the generation service. Caller metadata cannot shadow core keys."""
    request: Dict[str, Any] = dict(metadata or {})
    request.update({
        "trigger_reason": payload.trigger_reason.value,
        "text_window": payload.text_window,
        "cognitive_state": payload.cognitive_state.value,
        "current_phase": payload.current_phase.value,
        "user_prompt": payload.user_prompt,
        "idle_duration_seconds": round(payload.idle_duration_seconds, 3),
    })
    return request
