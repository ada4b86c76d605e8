"""
Application configuration loaded from environment variables.
Uses pydantic-settings with python-dotenv for .env file loading.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    Priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values
    """

    # Database configuration
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_DATABASE: str = "unidine"
    DB_CHARSET: str = "utf8mb4"
    # Full SQLAlchemy URL, overrides the MySQL parts above (e.g. "sqlite://")
    DB_URL: Optional[str] = None

    # OpenAI configuration
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Instagram Graph API / webhook configuration
    INSTAGRAM_APP_SECRET: str = ""
    INSTAGRAM_WEBHOOK_VERIFY_TOKEN: str = ""
    INSTAGRAM_ACCESS_TOKEN: str = ""

    # Google Places enrichment
    GOOGLE_MAPS_API_KEY: str = ""
    ENRICHMENT_TIMEOUT: float = 5.0

    # Extraction / merge policy
    SAVE_CONFIDENCE_THRESHOLD: float = 0.5
    CASE_INSENSITIVE_DEDUP: bool = False
    MERGE_MAX_ATTEMPTS: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"

    # API configuration
    API_PREFIX: str = ""
    DEBUG: bool = False

    # Server configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL for SQLAlchemy (MySQL unless DB_URL is set)."""
        if self.DB_URL:
            return self.DB_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_DATABASE}"
            f"?charset={self.DB_CHARSET}"
        )

    @property
    def enrichment_enabled(self) -> bool:
        """Places enrichment only runs with an API key configured."""
        return bool(self.GOOGLE_MAPS_API_KEY)

    def validate_openai_key(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.OPENAI_API_KEY and self.OPENAI_API_KEY.startswith("sk-"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra fields in .env
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Global settings instance for easy import
settings = get_settings()
