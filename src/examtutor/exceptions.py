"""
Exception taxonomy for the segmentation and answering pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from examtutor.schema.enums import IngestionStage

__all__ = [
    "ExamTutorError",
    "ConfigurationError",
    "EmptyCorpusError",
    "ExtractionFailedError",
    "MisformattedResponseError",
    "RasterizationError",
    "OcrError",
    "CompletionError",
    "StorageError",
    "ObjectNotFoundError",
    "NoContentAvailableError",
    "IngestionError",
]


class ExamTutorError(Exception):
    """Base class for every error raised by examtutor."""


class ConfigurationError(ExamTutorError):
    """Raised at construction time when required settings are missing."""


# ── Detection ────────────────────────────────────────────────


class EmptyCorpusError(ExamTutorError):
    """Raised when boundary detection is asked to run on zero pages."""


class ExtractionFailedError(ExamTutorError):
    """Raised when no valid question boundaries survive extraction and salvage."""


class MisformattedResponseError(ExamTutorError):
    """Raised when a model response parses but is not a JSON array."""


# ── Collaborators ────────────────────────────────────────────


class RasterizationError(ExamTutorError):
    """Raised when a document cannot be rendered to page images."""


class OcrError(ExamTutorError):
    """Raised when an OCR engine fails on a page image."""


class CompletionError(ExamTutorError):
    """
    Raised when a completion provider fails.

    Attributes:
        provider (str): Registry key of the failing provider.
        status (int | None): HTTP status reported by the provider, if any.
        message (str): Provider error message.
        transient (bool): Whether a retry may succeed.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status: int | None = None,
        transient: bool = False,
    ) -> None:
        self.provider = provider
        self.status = status
        self.message = message
        self.transient = transient
        prefix = f"{provider} completion failed"
        if status is not None:
            prefix += f" (status {status})"
        super().__init__(f"{prefix}: {message}")


class StorageError(ExamTutorError):
    """Raised when the object storage or question store cannot complete a write."""


class ObjectNotFoundError(StorageError):
    """Raised when an object storage key or reference does not exist."""


# ── Answering ────────────────────────────────────────────────


class NoContentAvailableError(ExamTutorError):
    """Raised when fallback mode has no page images to send (paper still processing)."""


# ── Ingestion ────────────────────────────────────────────────


class IngestionError(ExamTutorError):
    """
    Raised when an ingestion run cannot complete.

    Attributes:
        stage (IngestionStage): Pipeline stage that failed.
        succeeded (int): Number of questions written before the failure.
        cause (BaseException | None): Underlying error.
    """

    def __init__(
        self,
        stage: "IngestionStage",
        succeeded: int = 0,
        cause: BaseException | None = None,
    ) -> None:
        self.stage = stage
        self.succeeded = succeeded
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Ingestion failed at stage '{stage.value}' after {succeeded} question(s){detail}"
        )
