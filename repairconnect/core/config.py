from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "UTC"

    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    DATA_DIR: str = "./data/scheduling"

    NOTIFICATION_WEBHOOK_URL: str | None = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # JSON mapping {"monday": {"open": "08:00", "close": "17:00", "closed": false}, ...}
    DEFAULT_OPERATING_HOURS: str | None = None

    MAX_ADVANCE_DAYS: int = 90
    MIN_DURATION_HOURS: float = 0.5
    MAX_DURATION_HOURS: float = 12.0
    EARLIEST_START_HOUR: int = 6
    LATEST_START_HOUR: int = 22
    RESCHEDULE_NOTICE_HOURS: int = 24
    MAX_COMPARE_WORKSHOPS: int = 10


settings = Settings()
