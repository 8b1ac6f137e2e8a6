"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "FinSight"
    environment: str = "development"  # development, production, test
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/finsight.sqlite"
    database_timeout_seconds: float = 10.0

    # Owner used when no X-User-Id header is sent (auth lives in front of this API)
    default_owner_id: str = "local"

    # Recurring scheduler
    scheduler_enabled: bool = True
    scheduler_daily_hour: int = 0
    scheduler_daily_minute: int = 0
    scheduler_catchup_interval_hours: int = 1
    scheduler_dev_interval_minutes: int = 5
    scheduler_lock_timeout_seconds: float = 30.0

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


# Global settings instance
settings = Settings()
