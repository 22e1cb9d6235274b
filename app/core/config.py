from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class QualityPolicy(str, Enum):
    """How the resolver reacts when a requested quality is not available."""

    BEST_EFFORT = "best-effort"
    STRICT = "strict"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"
    port: int = Field(3000, validation_alias=AliasChoices("PORT", "APP_PORT"))
    log_level: str = "INFO"
    cors_origins: Annotated[list[str], NoDecode] = ["*"]
    quality_policy: QualityPolicy = QualityPolicy.BEST_EFFORT
    metadata_timeout_seconds: float = 30.0
    stream_connect_timeout_seconds: float = 10.0
    stream_read_timeout_seconds: float = 30.0
    stream_chunk_size: int = 64 * 1024
    filename_max_length: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("filename_max_length")
    @classmethod
    def _check_filename_length(cls, value: int) -> int:
        # Room for at least one stem character, a dot and a short extension.
        if value < 8:
            raise ValueError("filename_max_length must be at least 8")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
