"""
Question boundary detection by a vision-capable completion model.
"""

import logging

from examtutor.completion import CompletionClient
from examtutor.exceptions import CompletionError, ExtractionFailedError
from examtutor.schema import (
    CompletionPart,
    CompletionRequest,
    GenerationPolicy,
    Page,
    QuestionBoundary,
)
from examtutor.utils import get_logger

from .parsing import load_items, validate_items

__all__ = ["BOUNDARY_PROMPT", "sample_pages", "GenerativeDetector"]

BOUNDARY_PROMPT = """You are an expert exam paper analyzer. Extract and split all questions from this exam paper.

Each page image is preceded by its page number. Identify every question and respond with ONLY a JSON array:
[
  {"questionNumber": "1", "startPage": 1, "endPage": 1, "fullText": "Complete question text..."},
  {"questionNumber": "2", "startPage": 2, "endPage": 3, "fullText": "Complete question text including all parts..."}
]

Rules:
1. Look for "Question 1", "Q1", "1.", "1)" or similar markers.
2. Include ALL text belonging to each question, including sub-parts and options.
3. If a question spans multiple pages, set endPage accordingly.
4. Page numbers start from 1 and must match the labels given with the images.
5. Extract EVERY question, do not skip any.
6. Return ONLY the JSON array, starting with [ and ending with ]. No markdown, no commentary."""


def sample_pages(pages: list[Page], max_pages: int | None) -> list[Page]:
    """
    Pick at most `max_pages` pages spread evenly across the document.

    The first and last pages are always kept when more than one page is sampled.
    """
    if max_pages is None or len(pages) <= max_pages:
        return list(pages)
    if max_pages == 1:
        return [pages[0]]
    step = (len(pages) - 1) / (max_pages - 1)
    indices = sorted({round(i * step) for i in range(max_pages)})
    return [pages[i] for i in indices]


class GenerativeDetector:
    """
    Asks a vision model for a JSON array of question boundaries and validates it.

    Attributes:
        client (CompletionClient): Completion capability.
        provider (str | None): Backend key; the client's default if None.
        max_pages (int | None): Cap on page images sent.
        policy (GenerationPolicy): Low temperature, large output, JSON mode.
    """

    def __init__(
        self,
        client: CompletionClient,
        provider: str | None = None,
        max_pages: int | None = None,
        temperature: float = 0.1,
        max_output_tokens: int = 16384,
    ):
        self.client = client
        self.provider = provider
        self.max_pages = max_pages
        self.policy = GenerationPolicy(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            top_p=0.8,
            json_mode=True,
        )
        self.logger = get_logger("detection", level=logging.DEBUG)

    def build_request(self, pages: list[Page]) -> CompletionRequest:
        parts = [CompletionPart.from_text(BOUNDARY_PROMPT)]
        for page in sample_pages(pages, self.max_pages):
            parts.append(CompletionPart.from_text(f"Page {page.page_number}:"))
            parts.append(CompletionPart.from_image(page.image_bytes))
        return CompletionRequest(parts=parts, policy=self.policy)

    def detect(self, pages: list[Page]) -> list[QuestionBoundary]:
        """
        Run generative extraction over the pages.

        Raises:
            ExtractionFailedError: If the provider fails, returns no text, or no
                valid item survives salvage.
            MisformattedResponseError: If the response is not a JSON array.
        """
        page_count = max(page.page_number for page in pages)
        try:
            response = self.client.complete(self.build_request(pages), self.provider)
        except CompletionError as exc:
            raise ExtractionFailedError(f"completion failed: {exc}") from exc

        raw_text = response.text
        if not raw_text or not raw_text.strip():
            raise ExtractionFailedError("completion returned no text")
        self.logger.debug(f"Raw boundary response ({len(raw_text)} chars): {raw_text[:500]}")

        boundaries, dropped = validate_items(load_items(raw_text), page_count)
        if dropped:
            self.logger.warning(f"Dropped {dropped} invalid question item(s) from response")
        if not boundaries:
            raise ExtractionFailedError("no valid question items in response")
        self.logger.info(f"Generative detector found {len(boundaries)} question(s)")
        return boundaries
