import math
from dataclasses import dataclass, asdict
from typing import Callable

from app.config import MonitorPolicy
from app.services.behavior_engine.activity import ActivityTimeline
from app.services.behavior_engine.content import ContentTracker
from app.services.behavior_engine.events import CoarseType, EventHistory, KeyKind
from app.services.behavior_engine.states import CognitiveState, Phase


@dataclass
class MetricsSnapshot:
    """
    Point-in-time view of the derived writing metrics.
    Returned by polling; the UI layer decides when to ask for one.
    """
    typing_rate: float                # chars / minute since session start
    edit_ratio: float                 # EDIT share of the last 30 coarse events
    revision_ratio: float             # 0..1, low = thrashing
    pause_duration: int               # whole seconds since last input
    doc_length: int
    cursor_position: int

    current_burst_length: int
    last_burst_length: int
    immediate_revision_count: int
    distant_revision_count: int
    total_chars_typed: int
    total_active_seconds: float
    total_pause_seconds: float

    phase: Phase
    cognitive_state: CognitiveState

    def to_dict(self) -> dict:
        data = asdict(self)
        data["phase"] = self.phase.value
        data["cognitive_state"] = self.cognitive_state.value
        return data


class MetricEngine:
    """
    Read-only metric computations over the monitor's shared state.
    No method here mutates anything.
    """

    def __init__(
        self,
        history: EventHistory,
        content: ContentTracker,
        timeline: ActivityTimeline,
        clock: Callable[[], float],
        policy: MonitorPolicy,
    ):
        self.history = history
        self.content = content
        self.timeline = timeline
        self.clock = clock
        self.policy = policy

    def typing_rate(self) -> float:
        elapsed = self.clock() - self.timeline.session_start
        # Too early to divide by: a few seconds in, one keystroke looks like 60 cpm
        if elapsed < self.policy.min_rate_elapsed_seconds:
            return 0.0
        return self.content.total_chars_typed / (elapsed / 60.0)

    def edit_ratio(self) -> float:
        window = self.history.recent_events(self.policy.edit_window_size)
        if not window:
            return 0.0
        edits = sum(1 for e in window if e.classified_type == CoarseType.EDIT)
        return edits / len(window)

    def enter_rate(self) -> float:
        window = self.history.recent_events(self.policy.edit_window_size)
        if not window:
            return 0.0
        enters = sum(1 for e in window if e.classified_type == CoarseType.ENTER)
        return enters / len(window)

    def revision_ratio(self) -> float:
        """
        General editing-efficiency score over the last 100 keystrokes.

        Each backspace is charged twice: it fails to advance the document and
        erases a prior contribution. Clamped at 0.
        """
        sample = self.history.recent_keystrokes(self.policy.revision_sample_size)
        total = len(sample)
        if total == 0:
            return 1.0
        backspaces = sum(1 for k in sample if k.kind == KeyKind.BACKSPACE)
        return max(0.0, (total - 2 * backspaces) / total)

    def effective_contribution_ratio(self) -> float:
        """
        Struggle-detection variant of the revision ratio.

        Non-contributing keys (space/enter) are subtracted and re-added so they
        net to zero; backspaces stay double-negative. Not clamped: the caller
        only compares it against a threshold.
        """
        sample = self.history.recent_keystrokes(self.policy.revision_sample_size)
        sample_size = len(sample)
        if sample_size == 0:
            return 1.0
        backspace_count = sum(1 for k in sample if k.kind == KeyKind.BACKSPACE)
        non_char_count = sum(1 for k in sample if k.kind in (KeyKind.SPACE, KeyKind.ENTER))
        effective = sample_size - backspace_count * 2 - non_char_count + non_char_count
        return effective / sample_size

    def pause_duration(self) -> int:
        return math.floor(self.timeline.idle_time(self.clock()))

    def doc_length(self) -> int:
        return self.content.length

    def cursor_position(self) -> int:
        return self.content.cursor_offset

    def snapshot(self, phase: Phase, cognitive_state: CognitiveState) -> MetricsSnapshot:
        return MetricsSnapshot(
            typing_rate=round(self.typing_rate(), 2),
            edit_ratio=round(self.edit_ratio(), 4),
            revision_ratio=round(self.revision_ratio(), 4),
            pause_duration=self.pause_duration(),
            doc_length=self.doc_length(),
            cursor_position=self.cursor_position(),
            current_burst_length=self.timeline.current_burst_length,
            last_burst_length=self.timeline.last_burst_length,
            immediate_revision_count=self.timeline.immediate_revision_count,
            distant_revision_count=self.timeline.distant_revision_count,
            total_chars_typed=self.content.total_chars_typed,
            total_active_seconds=round(self.timeline.total_active_time, 3),
            total_pause_seconds=round(self.timeline.total_pause_time, 3),
            phase=phase,
            cognitive_state=cognitive_state,
        )
