"""
Maps a free-text student question to a stored question record.
"""

import logging
import re

from examtutor.exceptions import StorageError
from examtutor.schema import ResolvedContent, normalize_question_number
from examtutor.storage import QuestionStore
from examtutor.utils import get_logger

__all__ = ["QUERY_PATTERNS", "extract_question_number", "QuestionResolver"]

# Number with an optional sub-part letter, bare ("2a") or bracketed ("1(a)").
_LABEL = r"(\d+(?:\s*\(\s*[a-z]\s*\)|[a-z]?\b))"

# Ordered: the first pattern that matches wins.
QUERY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"question\s*" + _LABEL, re.IGNORECASE),
    re.compile(r"\bq\.?\s*" + _LABEL, re.IGNORECASE),
    re.compile(r"^\s*" + _LABEL, re.IGNORECASE),
]


def extract_question_number(query: str) -> str | None:
    """
    Extract a question-number label from a free-text query.

    "Question 1", "Q1", "q.1" and "1" all yield "1"; a letter suffix is kept,
    bare or bracketed ("explain q2a" yields "2a", "Q1(a)" yields "1a"). The label
    is normalized the same way stored question numbers are.

    Args:
        query (str): The student's question.

    Returns:
        str | None: Normalized label, or None if the query names no question.
    """
    for pattern in QUERY_PATTERNS:
        match = pattern.search(query)
        if match:
            label = normalize_question_number(match.group(1))
            if label:
                return label
    return None


class QuestionResolver:
    """
    Looks up the stored question (and its marking-scheme counterpart) named by a query.

    A miss is not an error: it returns None and the caller falls back to the
    whole document.

    Attributes:
        store (QuestionStore): Question records and answer-key links.
    """

    def __init__(self, store: QuestionStore):
        self.store = store
        self.logger = get_logger("answering", level=logging.DEBUG)

    def resolve(
        self,
        query: str,
        document_id: str,
        answer_key_document_id: str | None = None,
    ) -> ResolvedContent | None:
        """
        Resolve a query to question content.

        Args:
            query (str): The student's question.
            document_id (str): Exam document to search.
            answer_key_document_id (str | None): Marking-scheme document; the
                store's link for `document_id` is used when None.

        Returns:
            ResolvedContent | None: Content on a store hit; None when the query
            names no question or the question is not stored.
        """
        label = extract_question_number(query)
        if label is None:
            self.logger.debug(f"No question number in query {query!r}")
            return None
        return self.resolve_number(label, document_id, answer_key_document_id)

    def resolve_number(
        self,
        question_number: str,
        document_id: str,
        answer_key_document_id: str | None = None,
    ) -> ResolvedContent | None:
        """Resolve an already-known question number."""
        record = self.store.lookup(document_id, question_number)
        if record is None:
            self.logger.info(
                f"Question {question_number} not stored for {document_id}, falling back"
            )
            return None

        scheme_image = None
        try:
            key_id = answer_key_document_id or self.store.get_answer_key(document_id)
            if key_id:
                scheme = self.store.lookup(key_id, record.question_number)
                if scheme is not None:
                    scheme_image = scheme.image_ref
        except StorageError as exc:
            self.logger.warning(f"Marking-scheme lookup failed for {document_id}: {exc}")

        return ResolvedContent(
            question_number=record.question_number,
            question_text=record.extracted_text,
            question_image=record.image_ref,
            marking_scheme_image=scheme_image,
        )
