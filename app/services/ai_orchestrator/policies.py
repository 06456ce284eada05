"""
Strategy selection for generation requests.
Maps the monitor's trigger reason, writing phase and cognitive state to the
kind of help the generation service should give.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from app.services.behavior_engine.states import CognitiveState, Phase, TriggerReason


@dataclass(frozen=True)
class Strategy:
    id: str
    ui_message: str
    instruction: str


STRUGGLE_DIAGNOSIS = Strategy(
    id="S2_DIAGNOSIS",
    ui_message="Need a hand? Let's look at what's getting in the way.",
    instruction=(
        "[Goal]: Diagnose why the writer is stuck.\n"
        "[Action]: The writer has been deleting and rewriting without progress. "
        "Give one short observation each about LOGIC, STRUCTURE and TONE of the text "
        "around the cursor, labelled with those words."
    ),
)

IDEA_SPARK = Strategy(
    id="S1_IDEA_SPARK",
    ui_message="Looking for the next idea?",
    instruction=(
        "[Goal]: Stimulate divergent thinking.\n"
        "[Action]: The writer has paused. Offer 3 distinct directions for the next "
        "sentence (e.g. a concrete example, a counter-argument, an elaboration), "
        "one line each."
    ),
)

# Phase x state table for explicit user requests
PHASE_STRATEGIES: Dict[Tuple[Phase, CognitiveState], Strategy] = {
    (Phase.PLANNING, CognitiveState.BLOCK): Strategy(
        id="S2_STRUCTURED_GUIDANCE",
        ui_message="Want help sketching an outline?",
        instruction=(
            "[Goal]: Organize thoughts and set goals.\n"
            "[Action]: The writer is struggling to start. Suggest a logical "
            "3-point outline based on the keywords provided."
        ),
    ),
    (Phase.TRANSLATING, CognitiveState.BLOCK): Strategy(
        id="S1_GUIDED_EXPLORATION",
        ui_message="Three possible directions",
        instruction=(
            "[Goal]: Stimulate divergent thinking.\n"
            "[Action]: The writer is stuck. Provide 3 distinct narrative directions "
            "(e.g. specific example, counter-argument, elaboration) to unblock the flow."
        ),
    ),
    (Phase.TRANSLATING, CognitiveState.FLOW): Strategy(
        id="S1_ACTIVE_COWRITING",
        ui_message="Completing your sentence...",
        instruction=(
            "[Goal]: Maintain flow and reduce typing effort.\n"
            "[Action]: Complete the writer's current sentence naturally. Keep it "
            "under 10 words. Output text only."
        ),
    ),
    (Phase.REVIEWING, CognitiveState.BLOCK): Strategy(
        id="S2_CRITICAL_FEEDBACK",
        ui_message="Checking logic and tone...",
        instruction=(
            "[Goal]: Evaluate and correct.\n"
            "[Action]: Analyze the focused paragraph. Point out logical fallacies, "
            "missing evidence, or tone inconsistencies."
        ),
    ),
    (Phase.REVIEWING, CognitiveState.FLOW): Strategy(
        id="S1_PROOFREADING",
        ui_message="Polishing grammar and wording...",
        instruction=(
            "[Goal]: Maintain flow and reduce typing effort.\n"
            "[Action]: Act as a proofreader. Rewrite the current sentence to fix "
            "grammar or improve clarity. Output only the corrected text."
        ),
    ),
}

# Planning + Flow has no proactive strategy; explicit requests still get answered
DEFAULT_USER_STRATEGY = Strategy(
    id="S1_USER_REQUEST",
    ui_message="Working on your request...",
    instruction=(
        "[Goal]: Answer the writer's explicit request.\n"
        "[Action]: Follow the writer's instruction, using the text around the "
        "cursor as context. Be brief."
    ),
)


class StrategyPolicy:
    """Chooses a Strategy for a generation request."""

    @classmethod
    def select(
        cls,
        trigger_reason: TriggerReason,
        phase: Optional[Phase] = None,
        cognitive_state: Optional[CognitiveState] = None,
    ) -> Strategy:
        if trigger_reason == TriggerReason.STRUGGLE_DETECTION:
            return STRUGGLE_DIAGNOSIS
        if trigger_reason == TriggerReason.IDEA_SPARK:
            return IDEA_SPARK

        if phase is not None and cognitive_state is not None:
            strategy = PHASE_STRATEGIES.get((phase, cognitive_state))
            if strategy is not None:
                return strategy
        return DEFAULT_USER_STRATEGY
