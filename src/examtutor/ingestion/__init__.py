"""
Package 'ingestion'
"""

from .extraction import QuestionTextExtractor, fallback_text
from .pipeline import IngestionPipeline, IngestionReport, page_key

__all__ = [
    "IngestionPipeline",
    "IngestionReport",
    "QuestionTextExtractor",
    "fallback_text",
    "page_key",
]
