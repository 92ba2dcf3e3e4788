# copilot_server/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Resolved once at startup and handed to `create_app()`; the token
    service and the database engine receive their values from here
    instead of reading the environment themselves.

    Required in production (.env):
      - JWT_SECRET (signing secret for session tokens)
      - MASTER_PASSWORD (bootstrap admin password)

    Optional:
      - DATABASE_URL (defaults to a local SQLite file)
      - ANTHROPIC_API_KEY (without it /api/analyze returns 500)
    """

    PROJECT_NAME: str = "Pilot Traders Copilot Server"
    VERSION: str = "1.0.0"

    # Storage
    DATABASE_URL: str = "sqlite:///./database.sqlite"

    # Session tokens
    JWT_SECRET: str = "dev-change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7

    # Accounts / quota
    DEFAULT_DAILY_LIMIT: int = 10
    MIN_PASSWORD_LENGTH: int = 6

    # Master admin bootstrap (created once, on first start)
    MASTER_EMAIL: str = "admin@pilottraders.com"
    MASTER_PASSWORD: str = "changeme123"
    MASTER_NAME: str = "Master Admin"

    # Downstream analysis (Anthropic Messages API)
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
    ANALYSIS_MAX_TOKENS: int = 4000
    ANALYSIS_TIMEOUT_SECONDS: float = 120.0

    # Comma-separated; "*" allows any origin (desktop client uses file://)
    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
