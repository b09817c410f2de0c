"""Application configuration with environment variables."""
from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MODEL = "deepseek-chat"
DEFAULT_BASE_URL = "https://api.deepseek.com"


class Settings(BaseSettings):
    """Runtime configuration, read from the environment (and a .env file if present)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # DeepSeek
    api_key: SecretStr = Field(default=SecretStr(""), validation_alias="DEEPSEEK_API_KEY")
    model: str = Field(default=DEFAULT_MODEL, validation_alias="DS_MODEL")
    base_url: str = Field(default=DEFAULT_BASE_URL, validation_alias="DS_BASE_URL")
    temperature: float = Field(default=0.4, validation_alias="DS_TEMPERATURE")
    timeout_seconds: float = Field(default=60.0, gt=0, validation_alias="DS_TIMEOUT_SECONDS")

    # CORS, comma separated
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "ALLOW_ORIGIN"),
    )

    # Question store
    question_ttl_seconds: float = Field(default=1800.0, gt=0, validation_alias="QUESTION_TTL_SECONDS")
    max_batches: int = Field(default=1000, ge=1, validation_alias="QUESTION_STORE_MAX_BATCHES")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]
        return origins or ["*"]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return _get_settings_singleton()


@lru_cache(maxsize=1)
def _get_settings_singleton() -> Settings:
    return Settings()
