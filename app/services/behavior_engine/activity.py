from dataclasses import dataclass


@dataclass
class ActivityTimeline:
    """
    Timing, burst and revision counters fed by input events.

    Burst: run of TYPE events with no gap above the idle threshold. At most one
    burst is open (current_burst_length > 0); closing it moves the count to
    last_burst_length.
    """
    session_start: float
    last_action_time: float
    idle_gap_seconds: float = 2.0

    total_active_time: float = 0.0
    total_pause_time: float = 0.0

    current_burst_length: int = 0
    last_burst_length: int = 0

    # "fixing what I just typed" vs "going back to rewrite something earlier"
    immediate_revision_count: int = 0
    distant_revision_count: int = 0

    def idle_time(self, now: float) -> float:
        return max(0.0, now - self.last_action_time)

    def observe_action(self, now: float) -> float:
        """Account the gap since the last action and move the action clock to now."""
        idle = self.idle_time(now)
        if idle > self.idle_gap_seconds:
            self.total_pause_time += idle
            self.close_burst()
        else:
            self.total_active_time += idle
        self.last_action_time = now
        return idle

    def close_burst(self) -> bool:
        if self.current_burst_length <= 0:
            return False
        self.last_burst_length = self.current_burst_length
        self.current_burst_length = 0
        return True

    def extend_burst(self) -> int:
        self.current_burst_length += 1
        return self.current_burst_length

    def record_revision(self, at_end: bool) -> None:
        if at_end:
            self.immediate_revision_count += 1
        else:
            self.distant_revision_count += 1

    def reset_sentence(self) -> None:
        self.immediate_revision_count = 0
        self.distant_revision_count = 0
