# plant_ops/planners/config.py
"""
Planner configuration settings.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class PlannerConfig:
    """Global configuration for the decision engine."""

    # Delegated (LLM) planner
    LLM_ENABLED: bool = True
    MAX_ATTEMPTS: int = 3
    REQUEST_TIMEOUT_SECONDS: float = 12.0
    BACKOFF_INITIAL_SECONDS: float = 1.0
    BACKOFF_MAX_SECONDS: float = 8.0
    TOTAL_BUDGET_SECONDS: float = 45.0

    # Reject executes against lines that changed since the proposal
    OPTIMISTIC_LOCKING: bool = True

    # Productivity catalog, cycled round-robin
    TASK_CATEGORIES: Tuple[str, ...] = ("TPM", "5S", "Training", "Audit Prep", "Logistics Support")
    MAX_TASK_GROUP: int = 2

    # Load redistribution
    UTILIZATION_CEILING_PCT: float = 85.0

    # Background refresh
    REFRESH_INTERVAL_SECONDS: int = 30

    @classmethod
    def from_env(cls) -> "PlannerConfig":
        """Load config from environment variables."""
        return cls(
            LLM_ENABLED=_env_flag("PLANNER_LLM_ENABLED", "true"),
            MAX_ATTEMPTS=int(os.getenv("PLANNER_MAX_ATTEMPTS", "3")),
            REQUEST_TIMEOUT_SECONDS=float(os.getenv("PLANNER_TIMEOUT_SECONDS", "12")),
            TOTAL_BUDGET_SECONDS=float(os.getenv("PLANNER_BUDGET_SECONDS", "45")),
            OPTIMISTIC_LOCKING=_env_flag("ROSTER_OPTIMISTIC_LOCKING", "true"),
            UTILIZATION_CEILING_PCT=float(os.getenv("PLANNER_UTILIZATION_CEILING", "85")),
            REFRESH_INTERVAL_SECONDS=int(os.getenv("PLANNER_REFRESH_INTERVAL", "30")),
        )


# Global config instance
_config: Optional[PlannerConfig] = None


def get_config() -> PlannerConfig:
    """Get or create global config."""
    global _config
    if _config is None:
        _config = PlannerConfig.from_env()
    return _config


def set_llm_enabled(enabled: bool = True):
    """Switch the delegated planner on or off at runtime."""
    config = get_config()
    config.LLM_ENABLED = enabled
    return {"llm_enabled": enabled}
