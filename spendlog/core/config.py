from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    LOG_LEVEL, DATA_DIR, DB_FILENAME, DEFAULT_WEEKLY_BUDGET_MINOR_UNITS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Spendlog"
    debug: bool = False
    log_level: str = "INFO"
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "spendlog.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Per-scope budget defaults (used until a user saves their own settings)
    default_weekly_budget_minor_units: int = 25000  # $250.00
    default_week_start_day: int = 1  # Monday

    # Display
    currency_symbol: str = "$"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.default_weekly_budget_minor_units <= 0:
            raise ValueError("default_weekly_budget_minor_units must be positive")
        if not 0 <= self.default_week_start_day <= 6:
            raise ValueError(
                f"default_week_start_day must be 0..6, got {self.default_week_start_day}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
