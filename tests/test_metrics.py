import pytest

from app.services.behavior_engine.states import CognitiveState, Phase


def _type(monitor, key, n):
    for _ in range(n):
        monitor.on_input_event(key)


class TestTypingRate:

    def test_zero_before_minimum_elapsed(self, monitor, clock):
        monitor.update_content("hello", 5)
        clock.advance(5.9)
        assert monitor.typing_rate == 0.0

    def test_chars_per_minute(self, monitor, clock):
        monitor.update_content("x" * 30, 30)
        clock.advance(60)
        assert monitor.typing_rate == pytest.approx(30.0)

    def test_paste_does_not_count(self, monitor, clock):
        monitor.update_content("x" * 300, 300)
        clock.advance(60)
        assert monitor.typing_rate == 0.0


class TestEditRatio:

    def test_empty_history(self, monitor):
        assert monitor.edit_ratio == 0.0

    def test_window_of_last_thirty_events(self, monitor):
        _type(monitor, "Backspace", 30)
        _type(monitor, "a", 15)
        _type(monitor, "ArrowLeft", 15)
        assert monitor.edit_ratio == pytest.approx(0.5)


class TestRevisionRatio:

    def test_empty_sample_is_one(self, monitor):
        assert monitor.revision_ratio == 1.0

    def test_backspace_counts_double(self, monitor):
        _type(monitor, "a", 8)
        _type(monitor, "Backspace", 2)
        assert monitor.revision_ratio == pytest.approx(0.6)

    def test_clamped_at_zero(self, monitor):
        _type(monitor, "a", 2)
        _type(monitor, "Backspace", 8)
        assert monitor.revision_ratio == 0.0

    def test_stays_in_unit_interval(self, monitor):
        for i in range(150):
            monitor.on_input_event("Backspace" if i % 3 == 0 else "a")
            assert 0.0 <= monitor.revision_ratio <= 1.0

    def test_only_last_hundred_keystrokes(self, monitor):
        _type(monitor, "Backspace", 100)
        _type(monitor, "a", 100)
        assert monitor.revision_ratio == 1.0

    def test_effective_contribution_ignores_spaces(self, monitor):
        _type(monitor, "a", 50)
        _type(monitor, " ", 20)
        _type(monitor, "Backspace", 30)
        assert monitor.metric_engine.effective_contribution_ratio() == pytest.approx(0.4)


class TestPauseDuration:

    def test_whole_seconds_since_last_action(self, monitor, clock):
        monitor.on_input_event("a")
        clock.advance(3.7)
        assert monitor.pause_duration == 3


class TestSnapshot:

    def test_fresh_snapshot(self, monitor):
        snap = monitor.metrics()
        assert snap.typing_rate == 0.0
        assert snap.revision_ratio == 1.0
        assert snap.doc_length == 0
        assert snap.phase == Phase.PLANNING
        assert snap.cognitive_state == CognitiveState.FLOW

    def test_to_dict_uses_enum_values(self, monitor):
        data = monitor.metrics().to_dict()
        assert data["phase"] == "Planning"
        assert data["cognitive_state"] == "Flow"
        assert data["pause_duration"] == 0
