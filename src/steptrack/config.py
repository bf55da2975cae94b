from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./steptrack.db"
    default_daily_goal: int = 10000
    step_history_limit: int = 30  # days
    session_history_limit: int = 50
    step_poll_seconds: int = 5
    reset_streak_on_gap: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "STEPTRACK_"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
