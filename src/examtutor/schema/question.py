"""
Pydantic models for detected question boundaries and persisted question records.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .labels import normalize_question_number

__all__ = [
    "QuestionBoundary",
    "QuestionRecord",
    "AnswerKeyLink",
    "StoredImage",
    "ResolvedContent",
]


class QuestionBoundary(BaseModel):
    """
    A detected question's label and page span. Transient, never persisted.

    Attributes:
        question_number (str): Label as detected, e.g. "1" or "2a".
        start_page (int): First page (1-based, inclusive).
        end_page (int): Last page (inclusive), never before `start_page`.
        full_text (str): Text gathered by the detector for this question.
    """

    question_number: str
    start_page: int = Field(..., ge=1)
    end_page: int = Field(..., ge=1)
    full_text: str = ""

    @model_validator(mode="after")
    def _check_span(self):
        if self.start_page > self.end_page:
            raise ValueError(
                f"start_page ({self.start_page}) must not exceed end_page ({self.end_page})"
            )
        if not self.key:
            raise ValueError("question_number must contain at least one alphanumeric character")
        return self

    @property
    def key(self) -> str:
        """Normalized question-number key."""
        return normalize_question_number(self.question_number)

    @property
    def pages(self) -> range:
        return range(self.start_page, self.end_page + 1)


class QuestionRecord(BaseModel):
    """
    The durable artifact of ingestion: one addressable question of a document.

    Attributes:
        document_id (str): Owning document.
        question_number (str): Normalized question-number key.
        page_numbers (list[int]): Ascending, unique page numbers.
        extracted_text (str): Question text (may be empty if extraction failed).
        image_ref (str): Object-storage reference of the representative image.
    """

    document_id: str
    question_number: str
    page_numbers: list[int] = Field(default_factory=list)
    extracted_text: str = ""
    image_ref: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("question_number")
    @classmethod
    def _normalize_number(cls, v: str) -> str:
        key = normalize_question_number(v)
        if not key:
            raise ValueError(f"invalid question number {v!r}")
        return key

    @field_validator("page_numbers")
    @classmethod
    def _sort_pages(cls, v: list[int]) -> list[int]:
        if any(n < 1 for n in v):
            raise ValueError("page numbers must be positive")
        return sorted(set(v))


class AnswerKeyLink(BaseModel):
    """
    Association from an exam document to its marking-scheme document.
    """

    document_id: str
    answer_key_document_id: str


class StoredImage(BaseModel):
    """
    Result of an object-storage write.

    Attributes:
        key (str): Storage key the bytes were written under.
        ref (str): Public reference (URL or URI) for later retrieval.
        content_type (str): MIME type of the stored bytes.
    """

    key: str
    ref: str
    content_type: str = "image/jpeg"


class ResolvedContent(BaseModel):
    """
    Content for a targeted answer, produced by the question resolver.

    Attributes:
        question_number (str): Normalized label that was resolved.
        question_text (str): Stored extracted text.
        question_image (str): Image reference of the question.
        marking_scheme_image (str | None): Image reference of the matching
            marking-scheme question, if one exists.
    """

    question_number: str
    question_text: str
    question_image: str
    marking_scheme_image: str | None = None
