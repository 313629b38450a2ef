"""Deployment tracker settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    backend_url: str = "http://backend:8000"
    backend_api_key: str = ""
    ledger_url: str = "http://ledger:8000"
    ledger_api_key: str = ""
    http_timeout_seconds: float = 30.0

    # Session of the signed-in user this process acts for
    user_id: str = ""
    access_token: str = ""

    state_path: str = "/data/deployments.db"
    instance_id: str = "default"

    poll_interval_seconds: float = 10.0
    rate_limit_backoff_seconds: float = 60.0
    max_poll_seconds: float = 600.0
    heartbeat_interval_seconds: float = 10.0
    min_accounts: int = 5
    max_accounts: int = 25

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
