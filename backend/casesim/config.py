import logging
from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_config_logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google AI Configuration
    google_api_key: str = ""

    # Application Configuration
    environment: str = "development"
    debug: bool = False

    allowed_origins: List[str] = ["*"]

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # Server Configuration
    port: int = 8080
    host: str = "0.0.0.0"

    # Model Configuration
    gemini_model: str = "gemini-2.5-flash"

    # Header the UI uses to pass a user-supplied key
    api_key_header: str = "X-Goog-Api-Key"

    # Investigations untouched for this long are dropped with their chats
    investigation_idle_minutes: int = 120

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True
    )

    def validate_config(self):
        """Log warnings for missing configurations."""
        warnings = []
        if not self.google_api_key:
            warnings.append(
                f"GOOGLE_API_KEY not set - requests must carry the {self.api_key_header} header"
            )
        for w in warnings:
            _config_logger.warning(f"[CONFIG] {w}")
        return warnings


# Global settings instance
settings = Settings()
