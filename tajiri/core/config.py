# tajiri/core/config.py

from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Tajiri API"
    DEBUG: bool = False
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Database Configuration
    DATABASE_URL: str

    # JWT / Security Configuration
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080

    # CORS / public URLs
    FRONTEND_URL: str = "http://localhost:3000"
    BACKEND_BASE_URL: str = "http://localhost:8000"

    # AI assistant (OpenRouter)
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    PRIMARY_MODEL: str = "google/gemini-2.5-flash"
    FALLBACK_MODEL: str = "deepseek/deepseek-chat-v3-0324:free"
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Goal tracking
    DEFAULT_TIMEZONE: str = "Africa/Dar_es_Salaam"
    CURRENCY: str = "TZS"
    GOAL_PROCESSING_CONCURRENCY: int = 10
    GOAL_PROCESSING_TIMEOUT_SECONDS: float = 30.0
    ABANDONED_GOAL_RETENTION_DAYS: int = 3
    DAILY_LIMIT_LOOKBACK_DAYS: int = 30

    # Shared secret the external scheduler sends in X-Job-Token
    JOB_TRIGGER_TOKEN: str = ""

    @field_validator("GOAL_PROCESSING_CONCURRENCY")
    @classmethod
    def _at_least_one(cls, v):
        if v < 1:
            raise ValueError("GOAL_PROCESSING_CONCURRENCY must be >= 1")
        return v

    @property
    def is_sqlite(self) -> bool:
        """SQLite engines reject the pool sizing options used for Postgres"""
        return self.DATABASE_URL.startswith("sqlite")

# Create a global settings instance
settings = Settings()
