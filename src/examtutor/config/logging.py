"""
Defines and loads logging-related configuration.
"""

from pathlib import Path
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """
    Logging settings loaded from environment variables and .env.
    """

    log_dir: Path = Field(
        default=Path("logs"), description="Base directory for all log files."
    )

    ingestion_log_file: Path = Field(
        default=Path("logs/ingestion.log"),
        description="Log file path for the ingestion pipeline.",
    )
    detection_log_file: Path = Field(
        default=Path("logs/detection.log"),
        description="Log file path for question boundary detection.",
    )
    completion_log_file: Path = Field(
        default=Path("logs/completion.log"),
        description="Log file path for completion provider calls.",
    )
    answering_log_file: Path = Field(
        default=Path("logs/answering.log"),
        description="Log file path for question resolution and answering.",
    )
    api_log_file: Path = Field(
        default=Path("logs/api.log"), description="Log file path for the HTTP API."
    )

    max_bytes: int = Field(
        default=10 * 1024 * 1024, gt=0, description="Rotate a log file after this size."
    )
    backup_count: int = Field(
        default=5, ge=0, description="Rotated log files kept per component."
    )

    model_config = SettingsConfigDict(
        env_prefix="LOGGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def log_files(self) -> Dict[str, Path]:
        """
        Returns a mapping from component name to its log file Path,
        picking up both defaults and any LOGGING_* overrides.
        """
        files: Dict[str, Path] = {}
        data = self.model_dump()
        for key, val in data.items():
            if key.endswith("_log_file"):
                comp = key[: -len("_log_file")]
                files[comp] = val
        return files


# instantiate once, to be imported by other modules
logging_settings = LoggingSettings()
