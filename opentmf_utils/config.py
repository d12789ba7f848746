"""
Configuration management with environment validation
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, FilePath, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the OpenTMF utilities, read from OPENTMF_* variables"""

    model_config = SettingsConfigDict(
        env_prefix="OPENTMF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    backend: str = Field("native", pattern="^(native|mock)$")
    library_path: str = Field("libopentmf.so", min_length=1)
    mock_registry: Optional[FilePath] = None

    # Logging
    log_level: str = Field("WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field("text", pattern="^(text|json)$")
    log_file: Optional[Path] = None

    @field_validator("backend", "log_level", "log_format", mode="before")
    @classmethod
    def normalize_case(cls, v, info):
        """Accept mixed case values from the environment"""
        if isinstance(v, str):
            v = v.strip()
            return v.upper() if info.field_name == "log_level" else v.lower()
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance

    Raises:
        pydantic.ValidationError: If the environment holds invalid values
    """
    return Settings()
