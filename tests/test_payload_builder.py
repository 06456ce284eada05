from app.services.behavior_engine.payload_builder import build_generation_request, build_text_window
from app.services.behavior_engine.states import CognitiveState, Phase, TriggerReason
from app.services.behavior_engine.trigger_engine import PhaseTransition, TriggerPayload


class TestTextWindow:

    def test_marker_at_cursor(self):
        assert build_text_window("hello world", 5) == "hello [CURSOR]  world"

    def test_window_is_bounded_around_cursor(self):
        text = "a" * 1000 + "b" * 1000
        window = build_text_window(text, 1000, before=500, after=200)
        assert window == "a" * 500 + " [CURSOR] " + "b" * 200

    def test_cursor_is_clamped(self):
        assert build_text_window("abc", 99) == "abc [CURSOR] "
        assert build_text_window("", 0) == " [CURSOR] "


class TestMaskedWindow:

    def test_replaces_exactly_mask_length_chars(self):
        masked = build_text_window("draft: abcd", 11, mask_length=4, replacement="[TAG]")
        assert masked == "draft:  [TAG]  [CURSOR] "

    def test_mask_longer_than_prefix(self):
        assert build_text_window("ab", 2, mask_length=10, replacement="[TAG]") == " [TAG]  [CURSOR] "

    def test_marker_literal_in_text_does_not_move_the_splice(self):
        text = "note [CURSOR] here and the tail abcd"
        masked = build_text_window(text, len(text), mask_length=4, replacement="[TAG]")
        assert masked == "note [CURSOR] here and the tail  [TAG]  [CURSOR] "

    def test_text_after_cursor_is_kept(self):
        masked = build_text_window("one two three", 7, mask_length=3, replacement="[X]")
        assert masked == "one  [X]  [CURSOR]  three"

    def test_no_replacement_ignores_mask_length(self):
        assert build_text_window("abc", 3, mask_length=2) == "abc [CURSOR] "


class TestGenerationRequest:

    def setup_method(self):
        self.payload = TriggerPayload(
            current_phase=Phase.REVIEWING,
            cognitive_state=CognitiveState.FLOW,
            idle_duration_seconds=6.12345,
            recent_phase_transitions=(
                PhaseTransition(timestamp=1.0, from_phase=Phase.PLANNING, to_phase=Phase.REVIEWING),
            ),
            text_window="abc [CURSOR] ",
            trigger_reason=TriggerReason.STRUGGLE_DETECTION,
        )

    def test_core_keys(self):
        request = build_generation_request(self.payload)
        assert request == {
            "trigger_reason": "STRUGGLE_DETECTION",
            "text_window": "abc [CURSOR] ",
            "cognitive_state": "Flow",
            "current_phase": "Reviewing",
            "user_prompt": None,
            "idle_duration_seconds": 6.123,
        }

    def test_metadata_cannot_shadow_core_keys(self):
        request = build_generation_request(
            self.payload,
            {"document_id": "doc-1", "trigger_reason": "SOMETHING_ELSE"},
        )
        assert request["document_id"] == "doc-1"
        assert request["trigger_reason"] == "STRUGGLE_DETECTION"

    def test_payload_to_dict(self):
        data = self.payload.to_dict()
        assert data["recent_phase_transitions"] == [
            {"timestamp": 1.0, "from_phase": "Planning", "to_phase": "Reviewing"}
        ]
        assert data["idle_duration_seconds"] == 6.123
