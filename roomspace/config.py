from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_JWT_SECRET = "dev-jwt-secret-change-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SERVICE_NAME: str = "roomspace-api"
    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | production | test
    LOG_LEVEL: str = "INFO"

    # DB (unset -> in-memory store)
    DATABASE_URL: str | None = None
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 10
    DB_COMMAND_TIMEOUT: float = 30.0

    # JWT
    JWT_SECRET: str = _DEV_JWT_SECRET
    JWT_ALG: str = "HS256"
    JWT_ISSUER: str = "roomspace"
    JWT_AUDIENCE: str = "roomspace_clients"
    ACCESS_TTL_SECONDS: int = 7 * 24 * 3600  # 7 days

    # Password hashing (Argon2id)
    PWD_TIME_COST: int = 2
    PWD_MEMORY_COST: int = 65536
    PWD_PARALLELISM: int = 4

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_TIMEOUT_SECONDS: float = 30.0
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 2000

    # Amazon Product Advertising (no live integration yet)
    AMAZON_ACCESS_KEY: str = ""
    AMAZON_SECRET_KEY: str = ""
    AMAZON_PARTNER_TAG: str = "roomspace-20"
    AMAZON_REGION: str = "us-east-1"

    # OAuth (placeholders)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    APPLE_CLIENT_ID: str = ""
    APPLE_KEY_ID: str = ""
    APPLE_TEAM_ID: str = ""

    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"

    @property
    def mock_mode(self) -> bool:
        """True when records live in the in-memory store."""
        if self.ENVIRONMENT.strip().lower() == "test":
            return True
        url = (self.DATABASE_URL or "").strip()
        return not url or "localhost:54321" in url

    def service_available(self, service: str) -> bool:
        if service == "database":
            return not self.mock_mode
        if service == "openai":
            return self.OPENAI_API_KEY.startswith("sk-")
        if service == "amazon":
            return bool(self.AMAZON_ACCESS_KEY and self.AMAZON_SECRET_KEY)
        if service == "google":
            return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)
        if service == "apple":
            return bool(self.APPLE_CLIENT_ID and self.APPLE_KEY_ID and self.APPLE_TEAM_ID)
        return False

    def integrations(self) -> dict[str, bool]:
        return {name: self.service_available(name) for name in ("database", "openai", "amazon", "google", "apple")}

    def warn_missing(self) -> None:
        if not self.is_production:
            return
        log = logging.getLogger("config")
        if self.JWT_SECRET == _DEV_JWT_SECRET:
            log.warning("JWT_SECRET is not set; tokens are signed with the development secret.")
        if not self.OPENAI_API_KEY:
            log.warning("OPENAI_API_KEY is not set; design generation will use fallback layouts.")
        if self.mock_mode:
            log.warning("DATABASE_URL is not set; records are kept in memory and lost on restart.")


settings = Settings()
