import pytest

from app.config import MonitorPolicy
from app.services.behavior_engine.monitor import WritingMonitor


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def policy():
    return MonitorPolicy()


@pytest.fixture
def monitor(clock, policy):
    return WritingMonitor(policy=policy, clock=clock)
