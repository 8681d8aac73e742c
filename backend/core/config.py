"""
ClauseLens Configuration Module
===============================
Centralized configuration management using Pydantic Settings.
All environment variables are validated and typed.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses Pydantic v2 settings management for type safety and validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # === Generative Service (OpenAI) ===
    openai_api_key: str = Field(default="", description="OpenAI API key")
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model identifier"
    )
    generative_enabled: bool = Field(
        default=True,
        description="Use the generative service for summaries and questions"
    )

    # === Resilience (timeouts in seconds) ===
    api_timeout_seconds: float = Field(default=60.0, description="Default external call timeout")
    max_retries: int = Field(default=2, ge=0, description="Default retry budget")
    retry_base_delay_seconds: float = Field(default=1.0, description="First backoff delay")
    retry_max_delay_seconds: float = Field(default=5.0, description="Backoff delay cap")
    extraction_timeout_seconds: float = Field(default=45.0, description="Text extraction timeout")
    extraction_retries: int = Field(default=1, ge=0)
    language_timeout_seconds: float = Field(default=10.0, description="Language detection timeout")
    language_retries: int = Field(default=2, ge=0)
    summary_timeout_seconds: float = Field(default=30.0, description="Summary generation timeout")
    questions_timeout_seconds: float = Field(default=25.0, description="Question generation timeout")
    answer_timeout_seconds: float = Field(default=10.0, description="Question answering timeout")
    generative_retries: int = Field(default=1, ge=0)

    # === OCR Configuration ===
    tesseract_path: str = Field(
        default="/usr/bin/tesseract",
        description="Path to Tesseract OCR binary"
    )
    ocr_confidence_threshold: float = Field(
        default=0.5,
        description="Minimum OCR confidence score (0-1)"
    )

    # === Document Storage ===
    upload_dir: Path = Field(default=Path("./uploads"), description="Upload directory")
    max_file_size_mb: int = Field(default=20, description="Maximum file size in MB")

    # === Server Configuration ===
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Debug mode")

    # === Logging ===
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("upload_dir", mode="before")
    @classmethod
    def ensure_upload_dir(cls, v: str | Path) -> Path:
        """Ensure upload directory exists."""
        path = Path(v)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def generative_available(self) -> bool:
        """Whether generative calls should be attempted at all."""
        return self.generative_enabled and bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    settings = Settings()
    return settings


DEFAULT_LANGUAGE = "en"

# Display names used in generative prompts
LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "bn": "Bengali",
    "te": "Telugu",
    "mr": "Marathi",
    "ta": "Tamil",
    "ur": "Urdu",
    "gu": "Gujarati",
    "kn": "Kannada",
    "ml": "Malayalam",
    "pa": "Punjabi",
    "or": "Odia",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
    "ru": "Russian"
}

# Accepted upload types
SUPPORTED_CONTENT_TYPES = {
    "application/pdf": ".pdf",
    "text/plain": ".txt",
}
