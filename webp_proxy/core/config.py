from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_CACHE_CLEAR_KEY = "defaultKey"


class Settings(BaseSettings):
    # Load env from .env file; values are fixed once the process starts
    model_config = {"env_file": ".env", "extra": "ignore", "frozen": True}

    # Transcoding
    QUALITY: int = Field(90, ge=0, le=100)

    # Paths
    CACHE_DIR: Path = Path("./cache")
    SOURCE_ROOT: Path = Path(".")

    # Cache administration
    CACHE_CLEAR_KEY: str = Field(DEFAULT_CACHE_CLEAR_KEY, min_length=1)

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = Field(8080, ge=1, le=65535)
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def uses_default_clear_key(self) -> bool:
        return self.CACHE_CLEAR_KEY == DEFAULT_CACHE_CLEAR_KEY


@lru_cache
def get_settings() -> Settings:
    """Settings read from the environment, built once per process."""
    return Settings()
