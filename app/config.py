"""
Runtime configuration for the writing monitor backend.

Environment values (optionally from a .env file) configure the service surface;
MonitorPolicy carries the behavioral thresholds. Thresholds are policy, not part
of the algorithm, so they live here and are injected into each monitor.
"""

import os
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


@dataclass(frozen=True)
class MonitorPolicy:
    """
    Thresholds for the behavioral monitor.

    Defaults reproduce the calibration of the writing study the monitor was
    built for (short argumentative essays, single sitting).
    """

    # --- Idle / burst timing (seconds) ---
    idle_gap_seconds: float = 2.0
    # A gap longer than this closes the open typing burst and counts as pause time.

    struggle_idle_seconds: float = 5.0
    idea_idle_seconds: float = 10.0
    # Struggle needs a short stall on top of inefficient editing; the idea nudge
    # fires on sustained idleness alone.

    # --- Struggle detection ---
    struggle_min_doc_length: int = 100
    # Short drafts produce noisy ratios. Below 100 chars the struggle check is skipped.

    struggle_ratio_threshold: float = 0.6
    revision_sample_size: int = 100

    # --- Cooldowns (seconds) ---
    struggle_cooldown_seconds: float = 60.0
    idea_cooldown_seconds: float = 60.0

    # --- Sliding windows ---
    history_capacity: int = 200
    edit_window_size: int = 30
    min_rate_elapsed_seconds: float = 6.0

    # --- Content tracking ---
    paste_guard_chars: int = 50
    # Deltas of 50+ chars are treated as paste / bulk delete and excluded from throughput.

    context_before_chars: int = 500
    context_after_chars: int = 200

    # --- Phase detection ---
    planning_doc_length: int = 50
    planning_pause_seconds: float = 5.0
    planning_enter_rate: float = 0.3
    reviewing_max_cpm: float = 100.0
    reviewing_edit_ratio: float = 0.3
    reviewing_cursor_back_chars: int = 20

    # --- Log shipping ---
    log_soft_cap: int = 5000


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


@dataclass
class Settings:
    """Service settings read from the environment."""

    LLM_PROVIDER: str = "groq"
    LLM_MODEL: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None
    RESPONSE_LANGUAGE: str = "English"

    # None = no external sink; logs stay buffered under the soft cap
    LOG_SINK_URL: Optional[str] = None
    LOG_SINK_TIMEOUT: float = 5.0

    DECISION_TICK_SECONDS: float = 1.0
    FLUSH_INTERVAL_SECONDS: float = 5.0

    CORS_ORIGINS: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        return cls(
            LLM_PROVIDER=os.getenv("LLM_PROVIDER", "groq").lower(),
            LLM_MODEL=os.getenv("LLM_MODEL") or None,
            OPENAI_API_KEY=os.getenv("OPENAI_API_KEY") or None,
            GROQ_API_KEY=os.getenv("GROQ_API_KEY") or None,
            RESPONSE_LANGUAGE=os.getenv("RESPONSE_LANGUAGE", "English"),
            LOG_SINK_URL=os.getenv("LOG_SINK_URL") or None,
            LOG_SINK_TIMEOUT=_env_float("LOG_SINK_TIMEOUT", 5.0),
            DECISION_TICK_SECONDS=_env_float("DECISION_TICK_SECONDS", 1.0),
            FLUSH_INTERVAL_SECONDS=_env_float("FLUSH_INTERVAL_SECONDS", 5.0),
            CORS_ORIGINS=[o.strip() for o in origins.split(",") if o.strip()],
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
