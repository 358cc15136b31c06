"""
Filesystem storage backends: page/question images under a root directory and
one JSON file of question records per document.
"""

import os
import tempfile
import threading
from pathlib import Path
from urllib.parse import quote, unquote

from pydantic import BaseModel, Field, ValidationError

from examtutor.exceptions import ObjectNotFoundError, StorageError
from examtutor.schema import (
    AnswerKeyLink,
    QuestionRecord,
    StoredImage,
    normalize_question_number,
)

from .base import ObjectStorage, QuestionStore

__all__ = ["LocalObjectStorage", "JsonQuestionStore"]


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LocalObjectStorage(ObjectStorage):
    """
    Object storage rooted at a directory. References are `file://` URIs.

    Attributes:
        root (Path): Directory all keys are resolved against.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise StorageError(f"storage key escapes root: {key!r}")
        return path

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> StoredImage:
        path = self._path(key)
        try:
            _atomic_write(path, data)
        except OSError as exc:
            raise StorageError(f"failed to write {key!r}: {exc}") from exc
        return StoredImage(key=key, ref=path.as_uri(), content_type=content_type)

    def get(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFoundError(f"no object stored under {key!r}")
        except OSError as exc:
            raise StorageError(f"failed to read {key!r}: {exc}") from exc

    def key_for_ref(self, ref: str) -> str | None:
        prefix = self.root.as_uri() + "/"
        if ref.startswith(prefix):
            return unquote(ref[len(prefix) :])
        return None


class _DocumentFile(BaseModel):
    document_id: str
    answer_key: AnswerKeyLink | None = None
    page_refs: list[str] = Field(default_factory=list)
    questions: list[QuestionRecord] = Field(default_factory=list)


class JsonQuestionStore(QuestionStore):
    """
    Question store keeping one JSON file per document under `root`.

    Every write rewrites the document's file atomically.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path(self, document_id: str) -> Path:
        return self.root / f"{quote(document_id, safe='')}.json"

    def _load(self, document_id: str) -> _DocumentFile:
        path = self._path(document_id)
        if not path.exists():
            return _DocumentFile(document_id=document_id)
        try:
            return _DocumentFile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise StorageError(f"corrupt question file for {document_id!r}: {exc}") from exc

    def _save(self, doc: _DocumentFile) -> None:
        try:
            _atomic_write(
                self._path(doc.document_id), doc.model_dump_json(indent=2).encode("utf-8")
            )
        except OSError as exc:
            raise StorageError(f"failed to write questions for {doc.document_id!r}: {exc}") from exc

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
            doc = self._load(document_id)
            doc.questions = [
                q for q in doc.questions if q.question_number != record.question_number
            ]
            doc.questions.append(record)
            self._save(doc)
        return record

    def lookup(self, document_id: str, question_number: str) -> QuestionRecord | None:
        key = normalize_question_number(question_number)
        with self._lock:
            doc = self._load(document_id)
        for record in doc.questions:
            if record.question_number == key:
                return record
        return None

    def list_questions(self, document_id: str) -> list[QuestionRecord]:
        with self._lock:
            doc = self._load(document_id)
        return self._sort_records(doc.questions)

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._path(document_id).unlink(missing_ok=True)

    def link_answer_key(self, document_id: str, answer_key_document_id: str) -> AnswerKeyLink:
        link = AnswerKeyLink(
            document_id=document_id, answer_key_document_id=answer_key_document_id
        )
        with self._lock:
            doc = self._load(document_id)
            doc.answer_key = link
            self._save(doc)
        return link

    def get_answer_key(self, document_id: str) -> str | None:
        with self._lock:
            link = self._load(document_id).answer_key
        return link.answer_key_document_id if link else None

    def save_page_refs(self, document_id: str, refs: list[str]) -> None:
        with self._lock:
            doc = self._load(document_id)
            doc.page_refs = list(refs)
            self._save(doc)

    def page_refs(self, document_id: str) -> list[str]:
        with self._lock:
            return list(self._load(document_id).page_refs)
