"""
Configuration management for the PDF RAG Backend.
Handles environment variables and application settings.
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from environment
    )

    # API Configuration
    app_name: str = Field(default="PDF RAG Backend")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    cors_origins: List[str] = Field(default=["*"])

    # Google AI Configuration
    google_api_key: str = Field(default="")
    google_embedding_model: str = Field(default="models/embedding-001")
    google_chat_model: str = Field(default="gemini-2.0-flash")
    google_temperature: float = Field(default=0.1)
    google_max_output_tokens: int = Field(default=2048)
    provider_timeout_seconds: float = Field(default=60.0, gt=0)

    # Retrieval Configuration
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    retrieval_k: int = Field(default=4, gt=0)

    # File Processing Configuration
    max_file_size_mb: int = Field(default=50, gt=0)


# Global settings instance
settings = Settings()


def validate_required_settings(app_settings: Settings = None) -> None:
    """Validate that all required settings are present."""
    app_settings = app_settings or settings
    required_settings = [
        ("google_api_key", app_settings.google_api_key),
    ]

    missing_settings = []
    for setting_name, setting_value in required_settings:
        if not setting_value:
            missing_settings.append(setting_name)

    if missing_settings:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_settings).upper()}. "
            "Please check your .env file."
        )

    if app_settings.chunk_overlap >= app_settings.chunk_size:
        raise ValueError(
            f"CHUNK_OVERLAP ({app_settings.chunk_overlap}) must be smaller than CHUNK_SIZE ({app_settings.chunk_size})."
        )
