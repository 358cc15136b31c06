"""
Package 'detection': question boundary detection strategies and their merge.
"""

from .detector import QuestionBoundaryDetector
from .generative import GenerativeDetector
from .merge import merge_boundaries
from .parsing import parse_boundary_response, salvage_objects
from .text_pattern import TextPatternDetector, match_question_marker

__all__ = [
    "QuestionBoundaryDetector",
    "TextPatternDetector",
    "GenerativeDetector",
    "merge_boundaries",
    "parse_boundary_response",
    "salvage_objects",
    "match_question_marker",
]
