from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    database_url: str

    EMAIL_HOST: str | None = None
    EMAIL_PORT: int = 587
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    EMAIL_FROM: str | None = None

    # Security (tokens are issued by the external auth service)
    SECRET_KEY: str = "something"
    ALGORITHM: str = "HS256"
    AUTH_ISSUER: str | None = None

    # Local calendar day for today/upcoming views and trends
    TIMEZONE: str = "UTC"

    # Reminders
    SCHEDULER_ENABLED: bool = True
    REMINDER_INTERVAL_MINUTES: int = 5
    REMINDER_BATCH_SIZE: int = 100
    DEFAULT_REMINDER_HOURS: int = 24

    # Suggestion cache
    SUGGESTION_TTL_HOURS: int = 24

    LOG_LEVEL: str = "INFO"
    ERROR_LOG_FILE: str = "error.log"

    class Config:
        env_file = ".env"

settings = Settings()
