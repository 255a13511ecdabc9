"""
Configuration management for the language trainer
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # OpenAI Configuration (conversation partner)
    openai_api_key: str | None = Field(default=None, env="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", env="OPENAI_MODEL")
    openai_max_tokens: int = Field(default=500, env="OPENAI_MAX_TOKENS")
    openai_temperature: float = Field(default=1.0, env="OPENAI_TEMPERATURE")
    api_timeout: int = Field(default=60, env="API_TIMEOUT")

    # Database Configuration
    database_url: str = Field(default="sqlite:///data/progress.db", env="DATABASE_URL")

    # Application Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    debug: bool = Field(default=False, env="DEBUG")
    content_path: str = Field(default="data/course.json", env="CONTENT_PATH")
    speech_locale: str = Field(default="en-US", env="SPEECH_LOCALE")

    # Spaced Repetition Configuration
    default_easiness_factor: float = Field(default=2.5, env="DEFAULT_EASINESS_FACTOR")
    min_easiness_factor: float = Field(default=1.3, env="MIN_EASINESS_FACTOR")

    # Practice Configuration
    points_per_exercise: int = Field(default=10, env="POINTS_PER_EXERCISE")
    three_star_threshold: int = Field(default=50, env="THREE_STAR_THRESHOLD")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path() -> str:
    """Get the database file path from URL"""
    settings = get_settings()
    if settings.database_url.startswith("sqlite:///"):
        return settings.database_url.replace("sqlite:///", "")
    return "data/progress.db"
