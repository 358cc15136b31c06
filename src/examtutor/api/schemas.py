"""
examtutor API – request and response models shared by the routers.
"""

from pydantic import BaseModel, Field

from examtutor.schema import QuestionRecord

PREVIEW_CHARS = 100


class QuestionSummary(BaseModel):
    """
    Short view of a stored question.

    Attributes:
        number: Normalized question number.
        pages: 1-based page numbers the question spans.
        preview: First characters of the extracted text.
        image_ref: Reference to the representative image.
    """

    number: str
    pages: list[int]
    preview: str = ""
    image_ref: str | None = None

    @classmethod
    def from_record(cls, record: QuestionRecord) -> "QuestionSummary":
        text = " ".join(record.extracted_text.split())
        if len(text) > PREVIEW_CHARS:
            text = text[:PREVIEW_CHARS] + "..."
        return cls(
            number=record.question_number,
            pages=record.page_numbers,
            preview=text,
            image_ref=record.image_ref,
        )


class ErrorDetail(BaseModel):
    """
    Body of a failed ingestion.

    Attributes:
        message: Human-readable summary.
        stage: Pipeline stage that failed.
        succeeded: Questions written before the failure.
    """

    message: str
    stage: str
    succeeded: int = Field(0, ge=0)
