"""Configuration management for Finledger."""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Development mode
    dev_mode: bool = True

    # Data directory
    data_dir: Path = Path.home() / ".finledger"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Import settings
    default_currency: str = "BRL"  # Regional default when CURDEF is missing
    default_user_id: int = 1  # Used when no X-User-Id header is sent
    max_upload_bytes: int = 5 * 1024 * 1024
    min_ofx_length: int = 50

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FINLEDGER_",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database path."""
        suffix = "dev" if self.dev_mode else "prod"
        return self.data_dir / f"finledger_{suffix}.db"

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def log_config(self) -> None:
        """Log current configuration."""
        logger.info("Configuration loaded")
        logger.info(f"  Dev Mode:          {self.dev_mode}")
        logger.info(f"  Data Directory:    {self.data_dir}")
        logger.info(f"  Database:          {self.db_path}")
        logger.info(f"  API Host:          {self.api_host}:{self.api_port}")
        logger.info(f"  Default Currency:  {self.default_currency}")
        logger.info(f"  Max Upload:        {self.max_upload_bytes} bytes")
        logger.info(f"  Log Level:         {self.log_level}")


# Global settings instance
settings = Settings()
