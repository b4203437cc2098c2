"""
Application configuration using Pydantic Settings.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    # Absent key means the remote matting path is unavailable and AUTO falls back to local.
    REMOTE_API_KEY: Optional[str] = None

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    WORKERS: int = 1

    # Storage settings
    OUTPUT_DIR: str = "outputs"

    # Global switch to enable/disable saving of intermediate debug images.
    DEBUG_SAVE_IMAGES: bool = False

    # Processing settings
    CROP_PADDING: int = 10
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024

    # Remote matting settings
    REMOTE_PROVIDER: str = "removebg"  # or "huggingface"
    REMOVEBG_URL: str = "https://api.remove.bg/v1.0/removebg"
    HUGGINGFACE_URL: str = "https://api-inference.huggingface.co/models/briaai/RMBG-1.4"
    REMOTE_TIMEOUT_S: float = 30.0
    REMOTE_OUTPUT_SIZE: str = "auto"  # remove.bg "size" field: auto, preview, full

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def remote_configured(self) -> bool:
        return bool(self.REMOTE_API_KEY)


# Create global settings instance
settings = Settings()
