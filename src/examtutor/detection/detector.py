import logging

from examtutor.completion import CompletionClient
from examtutor.exceptions import (
    ConfigurationError,
    EmptyCorpusError,
    ExtractionFailedError,
    MisformattedResponseError,
)
from examtutor.schema import DetectionMode, DetectorConfig, Page, QuestionBoundary
from examtutor.utils import get_logger

from .generative import GenerativeDetector
from .merge import merge_boundaries
from .text_pattern import TextPatternDetector


class QuestionBoundaryDetector:
    """
    Proposes question boundaries for a document's pages.

    Runs the text-pattern strategy, the generative strategy, or both (default),
    according to `config.mode`. In merged mode text-pattern labels take priority
    and generative labels only fill gaps.

    Attributes:
        config (DetectorConfig): Mode and strategy settings.
        text_detector (TextPatternDetector | None): Deterministic strategy.
        generative_detector (GenerativeDetector | None): Vision-model strategy.
    """

    def __init__(
        self,
        config: DetectorConfig | None = None,
        client: CompletionClient | None = None,
    ):
        """
        Args:
            config: Detection settings; defaults to merged mode.
            client: Completion client, required unless mode is text-only.

        Raises:
            ConfigurationError: If a generative mode is configured without a client.
        """
        self.config = config or DetectorConfig()
        self.logger = get_logger("detection", level=logging.DEBUG)

        self.text_detector: TextPatternDetector | None = None
        self.generative_detector: GenerativeDetector | None = None

        if self.config.mode in (DetectionMode.TEXT, DetectionMode.MERGED):
            self.text_detector = TextPatternDetector(scan_window=self.config.scan_window)
        if self.config.mode in (DetectionMode.GENERATIVE, DetectionMode.MERGED):
            if client is None:
                raise ConfigurationError(
                    f"detection mode '{self.config.mode.value}' requires a completion client"
                )
            self.generative_detector = GenerativeDetector(
                client,
                provider=self.config.provider,
                max_pages=self.config.max_pages,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
            )

    def detect(self, pages: list[Page]) -> list[QuestionBoundary]:
        """
        Detect question boundaries.

        Args:
            pages (list[Page]): The document's pages.

        Returns:
            list[QuestionBoundary]: One boundary per normalized question label,
                the first occurrence winning in every mode.

        Raises:
            EmptyCorpusError: If `pages` is empty.
            ExtractionFailedError: If no question could be detected.
            MisformattedResponseError: In generative-only mode, if the model
                response is not a JSON array.
        """
        if not pages:
            raise EmptyCorpusError("cannot detect questions in an empty document")

        text_results: list[QuestionBoundary] = []
        if self.text_detector is not None:
            text_results = self.text_detector.detect(pages)
            self.logger.info(f"Text-pattern detector found {len(text_results)} question(s)")

        if self.generative_detector is None:
            if not text_results:
                raise ExtractionFailedError("no question markers found in page text")
            return merge_boundaries(text_results, [])

        if self.text_detector is None:
            generative_results = self.generative_detector.detect(pages)
            unique = merge_boundaries(generative_results, [])
            if len(unique) < len(generative_results):
                self.logger.warning(
                    f"Dropped {len(generative_results) - len(unique)} repeated label(s) "
                    "from the generative response, keeping the first of each"
                )
            return unique

        try:
            generative_results = self.generative_detector.detect(pages)
        except (ExtractionFailedError, MisformattedResponseError) as exc:
            if not text_results:
                raise ExtractionFailedError(
                    f"text-pattern detection found nothing and generative detection failed: {exc}"
                ) from exc
            self.logger.warning(
                f"Generative detection failed, using text-pattern results only: {exc}"
            )
            return merge_boundaries(text_results, [])

        merged = merge_boundaries(text_results, generative_results)
        self.logger.info(
            f"Merged {len(text_results)} text-pattern and {len(generative_results)} "
            f"generative boundaries into {len(merged)}"
        )
        return merged
