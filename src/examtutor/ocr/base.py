import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from examtutor.exceptions import OcrError
from examtutor.schema import Page

__all__ = ["OcrResult", "OcrEngine", "apply_ocr"]


class OcrResult(BaseModel):
    """
    Text recognized on one image.

    Attributes:
        text (str): Recognized text, lines separated by newlines.
        confidence (float): Mean confidence in [0, 1]; 0 when unknown.
    """

    text: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class OcrEngine(ABC):
    """Abstract OCR capability."""

    @abstractmethod
    def extract_text(self, image: bytes) -> OcrResult:
        """
        Recognize text on an encoded image.

        Raises:
            OcrError: If recognition fails.
        """
        ...


def apply_ocr(pages: list[Page], engine: OcrEngine, logger: logging.Logger) -> list[Page]:
    """
    Fill `ocr_text` for pages that have none.

    A page whose OCR fails keeps empty text; the failure is logged.
    """
    result: list[Page] = []
    for page in pages:
        if page.ocr_text.strip():
            result.append(page)
            continue
        try:
            ocr = engine.extract_text(page.image_bytes)
        except OcrError as exc:
            logger.warning(f"OCR failed on page {page.page_number}: {exc}")
            result.append(page)
            continue
        logger.debug(
            f"OCR page {page.page_number}: {len(ocr.text)} chars, confidence {ocr.confidence:.2f}"
        )
        result.append(page.model_copy(update={"ocr_text": ocr.text}))
    return result
