import pytest

from app.services.ai_orchestrator.assistant import GenerationRequest
from app.services.ai_orchestrator.policies import (
    DEFAULT_USER_STRATEGY,
    IDEA_SPARK,
    STRUGGLE_DIAGNOSIS,
    StrategyPolicy,
)
from app.services.ai_orchestrator.prompts import PromptTemplate, build_generation_prompt
from app.services.behavior_engine.states import CognitiveState, Phase, TriggerReason



class TestStrategyPolicy:

    def test_proactive_triggers_have_fixed_strategies(self):
        assert StrategyPolicy.select(TriggerReason.STRUGGLE_DETECTION, Phase.TRANSLATING, CognitiveState.FLOW) is STRUGGLE_DIAGNOSIS
        assert StrategyPolicy.select(TriggerReason.IDEA_SPARK) is IDEA_SPARK

    def test_user_prompt_uses_phase_table(self):
        cases = {
            (Phase.PLANNING, CognitiveState.BLOCK): "S2_STRUCTURED_GUIDANCE",
            (Phase.TRANSLATING, CognitiveState.BLOCK): "S1_GUIDED_EXPLORATION",
            (Phase.TRANSLATING, CognitiveState.FLOW): "S1_ACTIVE_COWRITING",
            (Phase.REVIEWING, CognitiveState.BLOCK): "S2_CRITICAL_FEEDBACK",
            (Phase.REVIEWING, CognitiveState.FLOW): "S1_PROOFREADING",
        }
        for (phase, state), strategy_id in cases.items():
            assert StrategyPolicy.select(TriggerReason.USER_PROMPT, phase, state).id == strategy_id

    def test_planning_flow_falls_back(self):
        strategy = StrategyPolicy.select(TriggerReason.USER_PROMPT, Phase.PLANNING, CognitiveState.FLOW)
        assert strategy is DEFAULT_USER_STRATEGY
        assert StrategyPolicy.select(TriggerReason.USER_PROMPT) is DEFAULT_USER_STRATEGY


class TestPrompts:

    def test_template_missing_variable(self):
        template = PromptTemplate(system="{a}", user="{b}")
        with pytest.raises(ValueError):
            template.format(a="x")

    def test_user_request_prompt(self):
        request = GenerationRequest(
            trigger_reason="USER_PROMPT",
            text_window="It was a {dark} night [CURSOR] ",
            current_phase="Translating",
            cognitive_state="Flow",
            user_prompt="finish this sentence",
        )
        strategy = StrategyPolicy.select(TriggerReason.USER_PROMPT, Phase.TRANSLATING, CognitiveState.FLOW)
        system_prompt, user_prompt = build_generation_prompt(request, strategy, language="Korean")

        assert "Respond in Korean" in system_prompt
        assert "Writing phase: Translating" in system_prompt
        assert strategy.instruction in system_prompt
        assert "It was a {dark} night [CURSOR] " in user_prompt
        assert "Writer's request: finish this sentence" in user_prompt

    def test_struggle_prompt_mentions_idle_and_adjustment(self):
        request = GenerationRequest(
            trigger_reason="STRUGGLE_DETECTION",
            text_window="abc [CURSOR] ",
            current_phase="Reviewing",
            cognitive_state="Flow",
            idle_duration_seconds=6.4,
        )
        system_prompt, user_prompt = build_generation_prompt(request, STRUGGLE_DIAGNOSIS)

        assert "Idle for 6s" in system_prompt
        assert "keeps deleting" in system_prompt
        assert "Offer help suited to the situation above." in user_prompt
