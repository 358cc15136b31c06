"""
Pydantic models for the per-document page corpus.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .question import QuestionBoundary

__all__ = [
    "Page",
    "PageCorpus",
]


class Page(BaseModel):
    """
    A single rendered page of an exam document.

    Attributes:
        page_number (int): 1-based page index.
        image_bytes (bytes): Encoded raster image of the page.
        ocr_text (str): OCR text for the page (may be empty).
    """

    page_number: int = Field(..., ge=1)
    image_bytes: bytes = Field(repr=False)
    ocr_text: str = ""

    model_config = ConfigDict(frozen=True)


class PageCorpus(BaseModel):
    """
    Ordered pages of one document for one ingestion run.

    Attributes:
        document_id (str): Owning document.
        pages (list[Page]): Pages in ascending, contiguous order starting at 1.
    """

    document_id: str
    pages: list[Page] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_contiguous(self):
        numbers = [page.page_number for page in self.pages]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(
                f"page numbers must be contiguous from 1, got {numbers}"
            )
        return self

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page(self, page_number: int) -> Page:
        """Return the page with the given 1-based number."""
        return self.pages[page_number - 1]

    def contains(self, boundary: QuestionBoundary) -> bool:
        """Whether the boundary's span lies within this document's page range."""
        return 1 <= boundary.start_page and boundary.end_page <= self.page_count

    def pages_for(self, boundary: QuestionBoundary) -> list[Page]:
        """
        Pages covered by a boundary, in page order.

        Raises:
            ValueError: If the boundary falls outside the document's page range.
        """
        if not self.contains(boundary):
            raise ValueError(
                f"question {boundary.question_number!r} spans pages "
                f"{boundary.start_page}-{boundary.end_page}, "
                f"document has {self.page_count}"
            )
        return [self.page(n) for n in boundary.pages]
