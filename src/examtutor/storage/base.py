"""
Storage capabilities: object storage for images and the question store.
"""

from abc import ABC, abstractmethod

from examtutor.schema import AnswerKeyLink, QuestionRecord, StoredImage

from .http import fetch_url

__all__ = ["ObjectStorage", "QuestionStore"]


class ObjectStorage(ABC):
    """
    Key/value blob storage for page and question images.

    Writes to an existing key overwrite it.
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> StoredImage:
        """
        Store `data` under `key`, replacing any previous object.

        Returns:
            StoredImage: Key, public reference and content type.

        Raises:
            StorageError: If the write fails.
        """
        ...

    @abstractmethod
    def get(self, key: str) -> bytes:
        """
        Read the object stored under `key`.

        Raises:
            ObjectNotFoundError: If nothing is stored under `key`.
        """
        ...

    @abstractmethod
    def key_for_ref(self, ref: str) -> str | None:
        """Map a reference produced by `put` back to its key, or None if foreign."""
        ...

    def get_ref(self, ref: str, timeout: float = 30.0) -> bytes:
        """
        Read an object by reference.

        References produced by this storage are read directly; http(s) URLs are
        downloaded.

        Raises:
            ObjectNotFoundError: If the reference cannot be resolved.
            StorageError: If a download fails.
        """
        key = self.key_for_ref(ref)
        if key is not None:
            return self.get(key)
        return fetch_url(ref, timeout=timeout)


class QuestionStore(ABC):
    """
    Durable mapping from (document, question number) to a QuestionRecord.

    Question numbers are normalized on write and on lookup; lookups are exact
    matches on the normalized key. An upsert replaces the whole record.
    """

    @abstractmethod
    def upsert(
        self,
        document_id: str,
        question_number: str,
        page_numbers: list[int],
        extracted_text: str,
        image_ref: str,
    ) -> QuestionRecord:
        """Write a complete record, replacing any record with the same key."""
        ...

    @abstractmethod
    def lookup(self, document_id: str, question_number: str) -> QuestionRecord | None:
        """Return the record for the normalized key, or None."""
        ...

    @abstractmethod
    def list_questions(self, document_id: str) -> list[QuestionRecord]:
        """All records of a document, ordered by first page then label."""
        ...

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Drop every record, page reference and link of a document."""
        ...

    @abstractmethod
    def link_answer_key(self, document_id: str, answer_key_document_id: str) -> AnswerKeyLink:
        """
        Associate an exam document with its (single) marking-scheme document.

        Replaces any earlier link of `document_id`.
        """
        ...

    @abstractmethod
    def get_answer_key(self, document_id: str) -> str | None:
        ...

    @abstractmethod
    def save_page_refs(self, document_id: str, refs: list[str]) -> None:
        """Record the ordered page image references used by fallback answers."""
        ...

    @abstractmethod
    def page_refs(self, document_id: str) -> list[str]:
        ...

    @staticmethod
    def _sort_records(records: list[QuestionRecord]) -> list[QuestionRecord]:
        return sorted(
            records,
            key=lambda r: (r.page_numbers[0] if r.page_numbers else 0, r.question_number),
        )
