# plant_ops/config.py
import os


class Settings:
    """
    Very simple settings holder for the application shell.
    Planner tuning lives in planners/config.py.
    """

    def __init__(self) -> None:
        self.shift: str = os.getenv("PLANT_SHIFT", "A")
        self.seed_on_startup: bool = os.getenv("PLANT_SEED_ON_STARTUP", "true").lower() == "true"
        self.runner_enabled: bool = os.getenv("PLANT_RUNNER_ENABLED", "false").lower() == "true"
        self.log_level: str = os.getenv("PLANT_LOG_LEVEL", "INFO")


settings = Settings()
