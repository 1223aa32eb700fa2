"""
Configuration module for Patient Service API.
Uses Pydantic BaseSettings for validation - app fails fast on malformed config.
"""
import logging
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with validation.
    Values are read from the environment and from an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database Configuration
    patient_svc_db_dir: str = Field(default="data", description="Database directory")
    patient_svc_db_file: str = Field(default="patients.db", description="Database filename")
    patient_svc_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API Configuration
    patient_svc_host: str = Field(default="0.0.0.0", description="API host")
    patient_svc_port: int = Field(default=3001, description="API port")
    patient_svc_reload: bool = Field(default=False, description="Enable hot reload")

    # History Configuration
    patient_svc_sync_status_on_append: bool = Field(
        default=False,
        description="Copy the appended entry's vitals and status onto the patient record",
    )
    patient_svc_append_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts at the history read-modify-write before giving up on a version conflict",
    )

    # Client Configuration
    patient_svc_api_url: str = Field(default="http://localhost:3001", description="Base URL used by PatientAPIClient")
    patient_svc_client_timeout: float = Field(default=10.0, gt=0, description="HTTP client timeout in seconds")

    @model_validator(mode="after")
    def warn_on_unusual_settings(self) -> "Settings":
        """Log settings that are valid but change documented behaviour."""
        if self.patient_svc_sync_status_on_append:
            logger.warning(
                "PATIENT_SVC_SYNC_STATUS_ON_APPEND enabled - history appends will "
                "overwrite the patient's current vitals and health status"
            )
        return self

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.patient_svc_db_dir) / self.patient_svc_db_file)

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.patient_svc_db_dir).mkdir(parents=True, exist_ok=True)


# Create global settings instance
settings = Settings()

# Ensure directories exist on import
settings.ensure_directories()

# Module-level aliases used across the code base
DATABASE_DIR = settings.patient_svc_db_dir
DATABASE_FILE = settings.patient_svc_db_file
DATABASE_PATH = settings.database_path
DATABASE_BUSY_TIMEOUT = settings.patient_svc_db_busy_timeout

API_HOST = settings.patient_svc_host
API_PORT = settings.patient_svc_port
API_RELOAD = settings.patient_svc_reload

SYNC_STATUS_ON_APPEND = settings.patient_svc_sync_status_on_append
APPEND_MAX_RETRIES = settings.patient_svc_append_max_retries

PATIENT_SVC_API_URL = settings.patient_svc_api_url
CLIENT_TIMEOUT = settings.patient_svc_client_timeout
