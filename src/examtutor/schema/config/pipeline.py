from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from ..enums import DetectionMode

__all__ = [
    "DetectorConfig",
    "ComposerConfig",
    "ExtractionConfig",
    "PipelineConfig",
]


class DetectorConfig(BaseModel):
    """
    Configuration for question boundary detection.

    Attributes:
        mode (DetectionMode): Which strategies run (defaults to merged).
        scan_window (int | None): Only scan the first N lines of each page; None scans all.
        max_pages (int | None): Cap on page images sent to the generative strategy;
            pages are sampled evenly when the document is longer. None sends all.
        provider (str | None): Completion provider for the generative strategy.
        temperature (float): Sampling temperature for the generative strategy.
        max_output_tokens (int): Output cap for the generative strategy.
    """

    mode: DetectionMode = Field(DetectionMode.MERGED, description="Detection strategies")
    scan_window: int | None = Field(
        None, gt=0, description="Lines scanned per page by the text strategy"
    )
    max_pages: int | None = Field(
        None, gt=0, description="Page images sent to the generative strategy"
    )
    provider: str | None = Field(None, description="Provider for generative detection")
    temperature: float = Field(0.1, ge=0.0)
    max_output_tokens: int = Field(16384, gt=0)


class ComposerConfig(BaseModel):
    """
    Configuration for representative image composition.

    Attributes:
        crop_top_ratio (float): Fraction of image height removed from the top of
            every page (header/barcode band). 0 disables cropping.
        jpeg_quality (int): Quality of the encoded representative image.
    """

    crop_top_ratio: float = Field(0.12, ge=0.0, lt=1.0, description="Top band to crop")
    jpeg_quality: int = Field(85, ge=1, le=100, description="JPEG quality")


class ExtractionConfig(BaseModel):
    """
    Configuration for per-question text extraction.

    Attributes:
        enabled (bool): Whether to call the vision model for question text.
        batch_size (int): Questions in flight per batch.
        batch_pause_seconds (float): Pause between batches.
        provider (str | None): Completion provider for extraction.
        max_output_tokens (int): Output cap per question.
    """

    enabled: bool = Field(True, description="Run per-question text extraction")
    batch_size: int = Field(3, ge=1, le=5, description="Questions per batch")
    batch_pause_seconds: float = Field(1.0, ge=0.0, description="Pause between batches")
    provider: str | None = Field(None, description="Provider for text extraction")
    max_output_tokens: int = Field(4096, gt=0)


class PipelineConfig(BaseModel):
    """
    Top-level configuration for an ingestion run.

    Attributes:
        detector (DetectorConfig): Boundary detection settings.
        composer (ComposerConfig): Image composition settings.
        extraction (ExtractionConfig): Text extraction settings.
        render_dpi (int): DPI for PDF rasterization.
        compose_workers (int): Concurrent composition/storage workers.
        run_ocr (bool): Run OCR on pages lacking text before detection.
    """

    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    composer: ComposerConfig = Field(default_factory=ComposerConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    render_dpi: int = Field(144, ge=36, le=600, description="Rasterization DPI")
    compose_workers: int = Field(4, ge=1, description="Composition workers")
    run_ocr: bool = Field(True, description="OCR pages without text")

    @classmethod
    def from_yaml(cls, yaml_text: str | bytes | dict[str, Any]) -> "PipelineConfig":
        """
        Build a PipelineConfig from a YAML *string* / *bytes* / *dict*.
        """
        data: dict[str, Any]
        if isinstance(yaml_text, dict):
            data = yaml_text
        else:
            data = yaml.safe_load(yaml_text) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_path(cls, path: str | Path) -> "PipelineConfig":
        """Shortcut for `PipelineConfig.from_yaml(Path.read_text())`."""
        return cls.from_yaml(Path(path).read_text())

    def to_yaml(
        self,
        path: str | Path | None = None,
        *,
        sort_keys: bool = False,
        **yaml_kwargs: Any,
    ) -> str:
        """
        Serialize the current config to YAML.

        Args:
            path (str | Path | None): If provided, the YAML text is also written to this file.
            sort_keys (bool): Pass-through to `yaml.safe_dump`.
            yaml_kwargs (Any): Additional kwargs forwarded to `yaml.safe_dump`.

        Returns:
            str: YAML representation.
        """
        text = yaml.safe_dump(
            self.model_dump(mode="json", exclude_none=True),
            sort_keys=sort_keys,
            **yaml_kwargs,
        )
        if path is not None:
            Path(path).write_text(text)
        return text
