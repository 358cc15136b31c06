"""
Package: 'schema'
"""

from .enums import AnswerMode, DetectionMode, IngestionStage, PartKind
from .labels import normalize_question_number
from .question import (
    AnswerKeyLink,
    QuestionBoundary,
    QuestionRecord,
    ResolvedContent,
    StoredImage,
)
from .page import Page, PageCorpus
from .completion import CompletionPart, CompletionRequest, CompletionResponse
from .config import (
    ComposerConfig,
    DetectorConfig,
    ExtractionConfig,
    GenerationPolicy,
    PipelineConfig,
)

__all__ = [
    # enums
    "AnswerMode",
    "DetectionMode",
    "IngestionStage",
    "PartKind",
    # labels
    "normalize_question_number",
    # pages and questions
    "Page",
    "PageCorpus",
    "QuestionBoundary",
    "QuestionRecord",
    "AnswerKeyLink",
    "StoredImage",
    "ResolvedContent",
    # completion
    "CompletionPart",
    "CompletionRequest",
    "CompletionResponse",
    # config
    "GenerationPolicy",
    "DetectorConfig",
    "ComposerConfig",
    "ExtractionConfig",
    "PipelineConfig",
]
