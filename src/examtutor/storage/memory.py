"""
In-process storage backends, used for tests and single-process deployments.
"""

import threading
from collections import defaultdict

from examtutor.exceptions import ObjectNotFoundError
from examtutor.schema import (
    AnswerKeyLink,
    QuestionRecord,
    StoredImage,
    normalize_question_number,
)

from .base import ObjectStorage, QuestionStore

__all__ = ["InMemoryObjectStorage", "InMemoryQuestionStore"]


class InMemoryObjectStorage(ObjectStorage):
    """Object storage backed by a dict. References use the `memory://` scheme."""

    scheme = "memory://"

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> StoredImage:
        with self._lock:
            self._objects[key] = (data, content_type)
        return StoredImage(key=key, ref=f"{self.scheme}{key}", content_type=content_type)

    def get(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._objects[key][0]
            except KeyError:
                raise ObjectNotFoundError(f"no object stored under {key!r}")

    def key_for_ref(self, ref: str) -> str | None:
        if ref.startswith(self.scheme):
            return ref[len(self.scheme) :]
        return None

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)


class InMemoryQuestionStore(QuestionStore):
    """Thread-safe question store held in process memory."""

    def __init__(self):
        self._records: dict[str, dict[str, QuestionRecord]] = defaultdict(dict)
        self._answer_keys: dict[str, AnswerKeyLink] = {}
        self._page_refs: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def upsert(
        self,
        document_id: str,
        question_number: str,
        page_numbers: list[int],
        extracted_text: str,
        image_ref: str,
    ) -> QuestionRecord:
        record = QuestionRecord(
            document_id=document_id,
            question_number=question_number,
            page_numbers=page_numbers,
            extracted_text=extracted_text,
            image_ref=image_ref,
        )
        with self._lock:
            self._records[document_id][record.question_number] = record
        return record

    def lookup(self, document_id: str, question_number: str) -> QuestionRecord | None:
        key = normalize_question_number(question_number)
        with self._lock:
            return self._records.get(document_id, {}).get(key)

    def list_questions(self, document_id: str) -> list[QuestionRecord]:
        with self._lock:
            records = list(self._records.get(document_id, {}).values())
        return self._sort_records(records)

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._records.pop(document_id, None)
            self._answer_keys.pop(document_id, None)
            self._page_refs.pop(document_id, None)

    def link_answer_key(self, document_id: str, answer_key_document_id: str) -> AnswerKeyLink:
        link = AnswerKeyLink(
            document_id=document_id, answer_key_document_id=answer_key_document_id
        )
        with self._lock:
            self._answer_keys[document_id] = link
        return link

    def get_answer_key(self, document_id: str) -> str | None:
        with self._lock:
            link = self._answer_keys.get(document_id)
        return link.answer_key_document_id if link else None

    def save_page_refs(self, document_id: str, refs: list[str]) -> None:
        with self._lock:
            self._page_refs[document_id] = list(refs)

    def page_refs(self, document_id: str) -> list[str]:
        with self._lock:
            return list(self._page_refs.get(document_id, []))
