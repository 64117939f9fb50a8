"""
Configuration settings for the Try-On Gateway.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Try-On Gateway"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # === Remote Inference Service (Gradio Space) ===
    GRADIO_URL: str = "yisol/IDM-VTON"  # Space id or full base URL
    HF_TOKEN: Optional[str] = None
    TRYON_API_NAME: str = "/tryon"

    # === Retry & Timeouts ===
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 5.0  # seconds, base of exponential backoff
    RETRY_DELAY_CAP: float = 30.0  # seconds
    REQUEST_TIMEOUT: float = 60.0  # seconds; the remote call gets 2x this
    SESSION_MAX_AGE: float = 300.0  # seconds before a cached session is rebuilt

    # === Request Gate ===
    DUPLICATE_WINDOW: float = 10.0  # seconds an identical payload is considered in flight
    RESUBMIT_COOLDOWN: float = 5.0  # seconds between submissions of one caller

    # === Upload Validation ===
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5MB
    ALLOWED_MIME_TYPES: list[str] = ["image/jpeg", "image/jpg", "image/png"]

    # === Inference Parameters ===
    DENOISING_STEPS: int = 40
    DENOISING_STEPS_MAX: int = 40  # Remote rejects anything above this
    SEED: int = -1  # -1 lets the remote pick a random seed

    # === Downloads ===
    DOWNLOAD_ATTEMPTS: int = 3
    DOWNLOAD_RETRY_DELAY: float = 1.0  # seconds, fixed
    DOWNLOAD_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB

    # === Admin ===
    ADMIN_TOKEN: Optional[str] = None  # Admin endpoints are disabled when unset

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
