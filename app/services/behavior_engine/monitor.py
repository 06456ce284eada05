"""
WritingMonitor - behavioral monitoring and trigger decisions for one editing session.

Ingests raw key events and content snapshots, keeps rolling windows over them,
classifies the writer's phase and state, and decides (under per-kind cooldowns)
when to hand an intervention payload to the application.

One instance per active editing session. All state is owned here and only
changed through the public entry points.
"""

import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional

from app.config import MonitorPolicy
from app.services.behavior_engine.activity import ActivityTimeline
from app.services.behavior_engine.content import ContentTracker
from app.services.behavior_engine.cooldown import CooldownRegistry
from app.services.behavior_engine.events import (
    CoarseType,
    EventHistory,
    EventRecord,
    KeystrokeRecord,
    SinkType,
    classify_coarse,
    classify_for_sink,
    classify_keystroke,
    is_delete_key,
)
from app.services.behavior_engine.metrics import MetricEngine, MetricsSnapshot
from app.services.behavior_engine.payload_builder import build_text_window
from app.services.behavior_engine.states import CognitiveState, Phase, TriggerReason
from app.services.behavior_engine.trigger_engine import (
    PhaseClassifier,
    PhaseTransition,
    TriggerDecisionEngine,
    TriggerPayload,
)
from app.services.log_shipping.buffer import LogBuffer, LogRecord

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "__SNAPSHOT__"
PHASE_LOG_CAPACITY = 50
PAYLOAD_TRANSITIONS = 5


class WritingMonitor:

    def __init__(
        self,
        policy: Optional[MonitorPolicy] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.policy = policy or MonitorPolicy()
        self.clock = clock
        # Shared with the flusher, so it survives reset_session (cleared, not replaced)
        self.log_buffer = LogBuffer(soft_cap=self.policy.log_soft_cap)
        self._init_state()

    def _init_state(self) -> None:
        """(Re)build every piece of state at its construction-time default."""
        p = self.policy
        now = self.clock()

        self.history = EventHistory(capacity=p.history_capacity)
        self.content = ContentTracker(paste_guard_chars=p.paste_guard_chars)
        self.timeline = ActivityTimeline(
            session_start=now,
            last_action_time=now,
            idle_gap_seconds=p.idle_gap_seconds,
        )
        self.cooldowns = CooldownRegistry(self.clock)
        self.log_buffer.clear()

        self.metric_engine = MetricEngine(self.history, self.content, self.timeline, self.clock, p)
        self.phase_classifier = PhaseClassifier(self.metric_engine, p)
        self.decision_engine = TriggerDecisionEngine(self.metric_engine, self.timeline, self.cooldowns, p)

        self._phase = Phase.PLANNING
        self._cognitive_state = CognitiveState.FLOW
        self._phase_log: Deque[PhaseTransition] = deque(maxlen=PHASE_LOG_CAPACITY)

    # --- INGESTION ---

    def on_input_event(self, raw_key: str) -> None:
        """Handle one key-down (or IME composition-end) event."""
        now = self.clock()
        self.timeline.observe_action(now)

        coarse = classify_coarse(raw_key)
        if coarse == CoarseType.TYPE:
            self.timeline.extend_burst()
        elif coarse == CoarseType.ENTER:
            self.timeline.reset_sentence()

        if is_delete_key(raw_key):
            self.timeline.record_revision(at_end=self.content.cursor_at_end())

        cursor = self.content.cursor_offset
        self.history.append_event(EventRecord(
            timestamp=now,
            raw_key=raw_key,
            classified_type=coarse,
            cursor_offset=cursor,
        ))
        self.history.append_keystroke(KeystrokeRecord(
            kind=classify_keystroke(raw_key),
            timestamp=now,
            burst_length=self.timeline.current_burst_length,
        ))

        # Any input is evidence the writer is not blocked right now
        self._cognitive_state = CognitiveState.FLOW

        self.log_buffer.append(LogRecord(
            timestamp_ms=int(now * 1000),
            raw_key=raw_key,
            sink_type=classify_for_sink(raw_key),
            cursor_offset=cursor,
        ))

    def update_content(self, text: str, cursor_offset: int) -> None:
        self.content.update(text, cursor_offset)

    # --- DECISIONS ---

    def check_status(self) -> Optional[TriggerPayload]:
        """
        Evaluate the current state; return a payload when a trigger fires.

        Safe to call at any time. Apart from cooldown consumption, calling it
        twice on unchanged state has no further effect.
        """
        now = self.clock()

        # Burst closure on poll (no trigger)
        if self.timeline.idle_time(now) >= self.policy.idle_gap_seconds:
            self.timeline.close_burst()

        self._refresh_phase(now)

        reason = self.decision_engine.evaluate(now)
        if reason is None:
            return None
        return self._create_payload(reason)

    def manual_trigger(self, user_prompt: str) -> TriggerPayload:
        """Explicit user request. Bypasses thresholds and cooldowns."""
        return self._create_payload(TriggerReason.USER_PROMPT, user_prompt=user_prompt)

    def manual_trigger_with_replacement(
        self,
        user_prompt: str,
        mask_length: int,
        replacement_text: str,
    ) -> TriggerPayload:
        """
        Like manual_trigger, but the context window shows `replacement_text`
        instead of the `mask_length` chars typed just before the cursor
        (e.g. inline markup replaced by a semantic tag). The document itself is
        untouched.
        """
        masked = self._text_window(mask_length=mask_length, replacement=replacement_text)
        return self._create_payload(TriggerReason.USER_PROMPT, user_prompt=user_prompt, text_window=masked)

    # --- COOLDOWN HOOKS ---

    def extend_cooldown(self, kind: TriggerReason, seconds: float) -> float:
        return self.cooldowns.extend_cooldown(kind, seconds)

    def reset_cooldown(self, kind: TriggerReason) -> None:
        self.cooldowns.reset_cooldown(kind)

    # --- SESSION ---

    def reset_session(self) -> None:
        """Reinitialize every field to its construction-time default."""
        self._init_state()
        logger.info("Monitor session reset")

    def snapshot_log_record(self) -> LogRecord:
        """Synthetic record marking a forced flush (e.g. session teardown)."""
        return LogRecord(
            timestamp_ms=int(self.clock() * 1000),
            raw_key=SNAPSHOT_KEY,
            sink_type=SinkType.NC,
            cursor_offset=self.content.cursor_offset,
        )

    def metrics(self) -> MetricsSnapshot:
        return self.metric_engine.snapshot(self._phase, self._cognitive_state)

    # --- GETTERS ---

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def cognitive_state(self) -> CognitiveState:
        return self._cognitive_state

    @property
    def typing_rate(self) -> float:
        return self.metric_engine.typing_rate()

    @property
    def edit_ratio(self) -> float:
        return self.metric_engine.edit_ratio()

    @property
    def revision_ratio(self) -> float:
        return self.metric_engine.revision_ratio()

    @property
    def pause_duration(self) -> int:
        return self.metric_engine.pause_duration()

    @property
    def doc_length(self) -> int:
        return self.content.length

    @property
    def cursor_position(self) -> int:
        return self.content.cursor_offset

    @property
    def current_burst_length(self) -> int:
        return self.timeline.current_burst_length

    @property
    def last_burst_length(self) -> int:
        return self.timeline.last_burst_length

    @property
    def action_history(self) -> List[EventRecord]:
        return self.history.events

    @property
    def keystroke_history(self) -> List[KeystrokeRecord]:
        return self.history.keystrokes

    @property
    def phase_transitions(self) -> List[PhaseTransition]:
        return list(self._phase_log)

    # --- INTERNALS ---

    def _refresh_phase(self, now: float) -> None:
        detected = self.phase_classifier.classify()
        if detected == self._phase:
            return
        self._phase_log.append(PhaseTransition(timestamp=now, from_phase=self._phase, to_phase=detected))
        logger.info(f"Phase changed: {self._phase.value} -> {detected.value}")
        self._phase = detected

    def _text_window(self, mask_length: int = 0, replacement: Optional[str] = None) -> str:
        return build_text_window(
            self.content.text,
            self.content.cursor_offset,
            before=self.policy.context_before_chars,
            after=self.policy.context_after_chars,
            mask_length=mask_length,
            replacement=replacement,
        )

    def _create_payload(
        self,
        reason: TriggerReason,
        user_prompt: Optional[str] = None,
        text_window: Optional[str] = None,
    ) -> TriggerPayload:
        return TriggerPayload(
            current_phase=self._phase,
            cognitive_state=self._cognitive_state,
            idle_duration_seconds=self.timeline.idle_time(self.clock()),
            recent_phase_transitions=tuple(list(self._phase_log)[-PAYLOAD_TRANSITIONS:]),
            text_window=text_window if text_window is not None else self._text_window(),
            trigger_reason=reason,
            user_prompt=user_prompt,
        )
