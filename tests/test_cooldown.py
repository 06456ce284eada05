from app.services.behavior_engine.cooldown import CooldownRegistry
from app.services.behavior_engine.states import TriggerReason

STRUGGLE = TriggerReason.STRUGGLE_DETECTION
IDEA = TriggerReason.IDEA_SPARK


class TestCooldownRegistry:

    def test_unseen_kind_is_eligible(self, clock):
        registry = CooldownRegistry(clock)
        assert registry.next_available(STRUGGLE) == 0.0
        assert registry.is_eligible(STRUGGLE)

    def test_check_consumes_eligibility(self, clock):
        registry = CooldownRegistry(clock)
        assert registry.check_cooldown(STRUGGLE, 60)
        assert not registry.check_cooldown(STRUGGLE, 60)
        assert registry.next_available(STRUGGLE) == clock.now + 60

    def test_eligible_again_after_cooldown(self, clock):
        registry = CooldownRegistry(clock)
        registry.check_cooldown(STRUGGLE, 60)
        clock.advance(59.9)
        assert not registry.check_cooldown(STRUGGLE, 60)
        clock.advance(0.1)
        assert registry.check_cooldown(STRUGGLE, 60)

    def test_kinds_are_independent(self, clock):
        registry = CooldownRegistry(clock)
        registry.check_cooldown(STRUGGLE, 60)
        assert registry.check_cooldown(IDEA, 60)

    def test_extend_never_moves_backwards(self, clock):
        registry = CooldownRegistry(clock)
        first = registry.extend_cooldown(IDEA, 120)
        second = registry.extend_cooldown(IDEA, 10)
        assert second == first
        clock.advance(200)
        assert registry.extend_cooldown(IDEA, 10) == clock.now + 10

    def test_reset_makes_kind_eligible(self, clock):
        registry = CooldownRegistry(clock)
        registry.extend_cooldown(STRUGGLE, 300)
        assert not registry.is_eligible(STRUGGLE)
        registry.reset_cooldown(STRUGGLE)
        assert registry.is_eligible(STRUGGLE)
        # Resetting an unknown kind is a no-op
        registry.reset_cooldown(IDEA)
