"""
Defines and loads service-level configuration: where data lives and which
OCR engine and pipeline settings the API and scripts use.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["ServiceSettings"]


class ServiceSettings(BaseSettings):
    """
    Service settings loaded from environment variables and .env.

    Attributes:
        data_dir (Path): Root for stored images and question records.
        pipeline_config_path (Path | None): YAML file with a `PipelineConfig`.
        ocr_engine (str): 'tesseract', 'vision' (completion model) or 'none'.
        tesseract_cmd (str | None): Explicit path to the tesseract binary.
        ocr_provider (str | None): Provider key when `ocr_engine` is 'vision'.
    """

    data_dir: Path = Field(Path("data"), description="Root data directory")
    pipeline_config_path: Path | None = Field(
        None, description="YAML pipeline configuration"
    )
    ocr_engine: Literal["tesseract", "vision", "none"] = Field(
        "tesseract", description="OCR engine for pages without a text layer"
    )
    tesseract_cmd: str | None = Field(None, description="Path to tesseract")
    ocr_provider: str | None = Field(None, description="Provider for vision OCR")

    model_config = SettingsConfigDict(
        env_prefix="EXAMTUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def objects_dir(self) -> Path:
        return self.data_dir / "objects"

    @property
    def questions_dir(self) -> Path:
        return self.data_dir / "questions"
