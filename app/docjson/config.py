"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM provider (OpenAI-compatible chat completions)
    hf_token: str | None = None
    llm_base_url: str = "https://router.huggingface.co/v1"
    llm_model: str = "deepseek-ai/DeepSeek-V3.2:novita"
    llm_timeout_seconds: float = Field(default=60.0, gt=0)
    llm_max_input_chars: int = Field(default=6000, gt=0)
    fallback_text_chars: int = Field(default=500, ge=0)
    preview_chars: int = Field(default=500, ge=0)

    # Feature switches
    enable_structuring: bool = True
    enable_downloads: bool = True

    # Storage
    upload_dir: Path = Path("uploads")
    result_dir: Path = Path("results")
    upload_max_age_seconds: int = Field(default=3600, gt=0)
    sweep_interval_seconds: int = Field(default=600, gt=0)

    # Extraction
    ocr_language: str = "eng"
    ocr_pdf_fallback: bool = False
    ocr_dpi: int = Field(default=200, gt=0)
    extraction_timeout_seconds: float = Field(default=120.0, gt=0)

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
