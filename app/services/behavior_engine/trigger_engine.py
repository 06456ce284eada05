import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from app.config import MonitorPolicy
from app.services.behavior_engine.activity import ActivityTimeline
from app.services.behavior_engine.cooldown import CooldownRegistry
from app.services.behavior_engine.metrics import MetricEngine
from app.services.behavior_engine.states import CognitiveState, Phase, TriggerReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseTransition:
    timestamp: float
    from_phase: Phase
    to_phase: Phase

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "from_phase": self.from_phase.value,
            "to_phase": self.to_phase.value,
        }


@dataclass(frozen=True)
class TriggerPayload:
    """
    Snapshot handed to the application when an intervention is warranted.
    Built fresh per decision and consumed once by the caller.
    """
    current_phase: Phase
    cognitive_state: CognitiveState
    idle_duration_seconds: float
    recent_phase_transitions: Tuple[PhaseTransition, ...]
    text_window: str
    trigger_reason: TriggerReason
    user_prompt: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "current_phase": self.current_phase.value,
            "cognitive_state": self.cognitive_state.value,
            "idle_duration_seconds": round(self.idle_duration_seconds, 3),
            "recent_phase_transitions": [t.to_dict() for t in self.recent_phase_transitions],
            "text_window": self.text_window,
            "trigger_reason": self.trigger_reason.value,
            "user_prompt": self.user_prompt,
        }


class PhaseClassifier:
    """
    Writing-process phase (Planning / Translating / Reviewing) from current metrics.

    Rules:
    - Short draft (< 50 chars): Planning if the writer pauses (> 5s) or keeps
      hitting Enter (> 30% of recent keys, i.e. jotting an outline); otherwise
      Translating.
    - Longer draft: Reviewing if throughput is low (< 100 cpm), editing dominates
      (> 30% EDIT keys), or the cursor sits well before the end (> 20 chars);
      otherwise Translating.
    """

    def __init__(self, metrics: MetricEngine, policy: MonitorPolicy):
        self.metrics = metrics
        self.policy = policy

    def classify(self) -> Phase:
        p = self.policy
        doc_length = self.metrics.doc_length()

        if doc_length < p.planning_doc_length:
            if (self.metrics.pause_duration() > p.planning_pause_seconds
                    or self.metrics.enter_rate() > p.planning_enter_rate):
                return Phase.PLANNING
            return Phase.TRANSLATING

        is_cursor_back = (doc_length - self.metrics.cursor_position()) > p.reviewing_cursor_back_chars
        if (self.metrics.typing_rate() < p.reviewing_max_cpm
                or self.metrics.edit_ratio() > p.reviewing_edit_ratio
                or is_cursor_back):
            return Phase.REVIEWING

        return Phase.TRANSLATING


class TriggerDecisionEngine:
    """
    Decides whether the current tick warrants a behavioral trigger.

    Evaluation order, first match wins:
    1. Struggle detection: idle >= 5s AND doc >= 100 chars AND effective
       contribution ratio < 0.6 over the last 100 keystrokes.
    2. Idea spark: idle >= 10s.
    3. Nothing.

    Each kind has its own cooldown key, so dismissing an idea nudge does not
    silence a later struggle detection and vice versa.
    """

    def __init__(
        self,
        metrics: MetricEngine,
        timeline: ActivityTimeline,
        cooldowns: CooldownRegistry,
        policy: MonitorPolicy,
    ):
        self.metrics = metrics
        self.timeline = timeline
        self.cooldowns = cooldowns
        self.policy = policy

    def evaluate(self, now: float) -> Optional[TriggerReason]:
        p = self.policy
        idle_time = self.timeline.idle_time(now)

        # --- 1. STRUGGLE DETECTION ---
        # The ratio alone lags: it still reflects editing that may be long over.
        # Requiring a stall anchors the trigger to "stopped after inefficient editing".
        if idle_time >= p.struggle_idle_seconds and self.metrics.doc_length() >= p.struggle_min_doc_length:
            ratio = self.metrics.effective_contribution_ratio()
            if ratio < p.struggle_ratio_threshold:
                if self.cooldowns.check_cooldown(TriggerReason.STRUGGLE_DETECTION, p.struggle_cooldown_seconds):
                    logger.info(
                        f"Struggle detected - idle {idle_time:.1f}s, contribution ratio {ratio:.2f}"
                    )
                    return TriggerReason.STRUGGLE_DETECTION
                logger.debug("Struggle condition met but STRUGGLE_DETECTION is cooling down")

        # --- 2. IDEA SPARK (sustained idleness) ---
        if idle_time >= p.idea_idle_seconds:
            if self.cooldowns.check_cooldown(TriggerReason.IDEA_SPARK, p.idea_cooldown_seconds):
                logger.info(f"Idea spark - idle {idle_time:.1f}s")
                return TriggerReason.IDEA_SPARK

        return None
