"""
Enumerations used across detection, ingestion and answering.
"""

from enum import Enum

__all__ = [
    "DetectionMode",
    "AnswerMode",
    "IngestionStage",
    "PartKind",
]


class DetectionMode(str, Enum):
    """
    Which boundary detection strategies run.

    Attributes:
        TEXT: Deterministic OCR text-pattern scan only.
        GENERATIVE: Vision-model extraction only.
        MERGED: Both, text-pattern results first, generative results fill gaps.
    """

    TEXT = "text"
    GENERATIVE = "generative"
    MERGED = "merged"


class AnswerMode(str, Enum):
    """
    Content selection used for an answer.

    Attributes:
        OPTIMIZED: One question image (plus optional marking-scheme image).
        FALLBACK: Every page image of the paper (plus the marking scheme's).
    """

    OPTIMIZED = "optimized"
    FALLBACK = "fallback"


class IngestionStage(str, Enum):
    """Stages of an ingestion run, reported on failure."""

    RASTERIZATION = "rasterization"
    OCR = "ocr"
    DETECTION = "detection"
    EXTRACTION = "extraction"
    COMPOSITION = "composition"
    STORAGE = "storage"


class PartKind(str, Enum):
    """Kind of a completion request part."""

    TEXT = "text"
    IMAGE = "image"
