"""
Package 'storage': object storage for images and the question store.
"""

from .base import ObjectStorage, QuestionStore
from .http import fetch_url
from .local import JsonQuestionStore, LocalObjectStorage
from .memory import InMemoryObjectStorage, InMemoryQuestionStore

__all__ = [
    "ObjectStorage",
    "QuestionStore",
    "InMemoryObjectStorage",
    "InMemoryQuestionStore",
    "LocalObjectStorage",
    "JsonQuestionStore",
    "fetch_url",
]
