import logging
from typing import Callable, Dict

from app.services.behavior_engine.states import TriggerReason

logger = logging.getLogger(__name__)


class CooldownRegistry:
    """
    Per-trigger-kind "not before" timestamps.

    check_cooldown tests AND consumes eligibility in one step. Callers must
    not use it as a read; use is_eligible for that.
    """

    def __init__(self, clock: Callable[[], float]):
        self.clock = clock
        self._next_available: Dict[TriggerReason, float] = {}

    def next_available(self, kind: TriggerReason) -> float:
        # Missing entries default to 0: immediately eligible
        return self._next_available.get(kind, 0.0)

    def is_eligible(self, kind: TriggerReason) -> bool:
        return self.clock() >= self.next_available(kind)

    def check_cooldown(self, kind: TriggerReason, standard_cooldown_seconds: float) -> bool:
        now = self.clock()
        if now < self.next_available(kind):
            return False
        self._next_available[kind] = now + standard_cooldown_seconds
        return True

    def extend_cooldown(self, kind: TriggerReason, seconds: float) -> float:
        """
        Suppress a kind for `seconds` from now (e.g. the writer dismissed a nudge).
        Never moves the timestamp backwards; only reset_cooldown does that.
        """
        target = self.clock() + seconds
        updated = max(self.next_available(kind), target)
        self._next_available[kind] = updated
        logger.debug(f"Cooldown extended: {kind.value} until {updated:.3f}")
        return updated

    def reset_cooldown(self, kind: TriggerReason) -> None:
        self._next_available.pop(kind, None)
        logger.debug(f"Cooldown reset: {kind.value}")
