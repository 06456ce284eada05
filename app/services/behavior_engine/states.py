from enum import Enum

# --- THE STANDARDIZED FLAGS ---
# Str-based so they serialize to JSON as-is.

class TriggerReason(str, Enum):
    STRUGGLE_DETECTION = "STRUGGLE_DETECTION"
    IDEA_SPARK = "IDEA_SPARK"
    USER_PROMPT = "USER_PROMPT"

class CognitiveState(str, Enum):
    FLOW = "Flow"
    BLOCK = "Block"  # reserved: nothing in the engine produces it yet

class Phase(str, Enum):
    PLANNING = "Planning"
    TRANSLATING = "Translating"
    REVIEWING = "Reviewing"
