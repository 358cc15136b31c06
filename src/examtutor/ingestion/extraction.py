"""
Per-question text extraction through a vision model, run in small batches.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from examtutor.completion import CompletionClient
from examtutor.exceptions import CompletionError
from examtutor.schema import (
    CompletionPart,
    CompletionRequest,
    ExtractionConfig,
    GenerationPolicy,
    Page,
    QuestionBoundary,
)

__all__ = ["EXTRACTION_PROMPT", "fallback_text", "QuestionTextExtractor"]

EXTRACTION_PROMPT = """These images show pages {start}-{end} of an exam paper.
Transcribe the complete text of question {number} only, including all of its sub-parts and options.
Preserve mathematical notation. Output only the question text, nothing else."""


def fallback_text(boundary: QuestionBoundary, pages: list[Page]) -> str:
    """Best text available without a model: detector text, else the span's OCR text."""
    if boundary.full_text.strip():
        return boundary.full_text.strip()
    return "\n".join(
        page.ocr_text.strip()
        for page in pages
        if boundary.start_page <= page.page_number <= boundary.end_page and page.ocr_text.strip()
    )


class QuestionTextExtractor:
    """
    Extracts each question's text from its page images.

    Questions run `batch_size` at a time with a pause between batches. A
    question whose call fails keeps its fallback text; the others continue.

    Attributes:
        client (CompletionClient): Completion capability.
        config (ExtractionConfig): Batch size, pause and provider.
    """

    def __init__(
        self,
        client: CompletionClient,
        config: ExtractionConfig | None = None,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.sleep = sleep
        self.policy = GenerationPolicy(
            temperature=0.1, max_output_tokens=self.config.max_output_tokens
        )

    def build_request(self, boundary: QuestionBoundary, pages: list[Page]) -> CompletionRequest:
        parts = [
            CompletionPart.from_text(
                EXTRACTION_PROMPT.format(
                    start=boundary.start_page,
                    end=boundary.end_page,
                    number=boundary.question_number,
                )
            )
        ]
        for page in pages:
            if boundary.start_page <= page.page_number <= boundary.end_page:
                parts.append(CompletionPart.from_image(page.image_bytes))
        return CompletionRequest(parts=parts, policy=self.policy)

    def extract_one(self, boundary: QuestionBoundary, pages: list[Page]) -> str:
        """
        Extract one question's text, falling back on any provider failure.
        """
        fallback = fallback_text(boundary, pages)
        try:
            response = self.client.complete(
                self.build_request(boundary, pages), self.config.provider
            )
        except CompletionError as exc:
            self.logger.warning(
                f"Text extraction failed for question {boundary.question_number}: {exc}"
            )
            return fallback
        text = response.text.strip()
        return text or fallback

    def extract(
        self, boundaries: list[QuestionBoundary], pages: list[Page]
    ) -> dict[str, str]:
        """
        Extract text for every boundary.

        Returns:
            dict[str, str]: Text keyed by normalized question number.
        """
        texts: dict[str, str] = {}
        size = self.config.batch_size
        with ThreadPoolExecutor(max_workers=size) as executor:
            for start in range(0, len(boundaries), size):
                batch = boundaries[start : start + size]
                futures = {
                    boundary.key: executor.submit(self.extract_one, boundary, pages)
                    for boundary in batch
                }
                for boundary in batch:
                    try:
                        texts[boundary.key] = futures[boundary.key].result()
                    except Exception as exc:  # isolate per question
                        self.logger.error(
                            f"Unexpected extraction error for question {boundary.question_number}: {exc}"
                        )
                        texts[boundary.key] = fallback_text(boundary, pages)
                self.logger.info(
                    f"Extracted text batch {start // size + 1} ({len(batch)} question(s))"
                )
                if start + size < len(boundaries) and self.config.batch_pause_seconds > 0:
                    self.sleep(self.config.batch_pause_seconds)
        return texts
