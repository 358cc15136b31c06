"""
Ingestion job: page corpus -> boundaries -> question text -> representative
images -> question records, once per document.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from pydantic import BaseModel, Field, ValidationError

from examtutor.composition import ImageComposer
from examtutor.detection import QuestionBoundaryDetector
from examtutor.exceptions import (
    EmptyCorpusError,
    ExtractionFailedError,
    IngestionError,
    MisformattedResponseError,
    RasterizationError,
    StorageError,
)
from examtutor.ocr import OcrEngine, apply_ocr
from examtutor.rasterization import PdfRasterizer
from examtutor.schema import (
    IngestionStage,
    Page,
    PageCorpus,
    PipelineConfig,
    QuestionBoundary,
    QuestionRecord,
)
from examtutor.storage import QuestionStore
from examtutor.utils import Timer, get_logger

from .extraction import QuestionTextExtractor, fallback_text

__all__ = ["page_key", "IngestionReport", "IngestionPipeline"]


def page_key(document_id: str, page_number: int) -> str:
    """Object-storage key of a page image, used by fallback answers."""
    return f"{document_id}/page_{page_number:04}.jpg"


class IngestionReport(BaseModel):
    """
    Outcome of one ingestion run.

    Attributes:
        document_id (str): Ingested document.
        page_count (int): Pages in the document.
        questions (list[QuestionRecord]): Records written, in page order.
        failures (dict[str, str]): Error message per question label that was not written.
        elapsed_seconds (float): Wall-clock duration of the run.
    """

    document_id: str
    page_count: int
    questions: list[QuestionRecord] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> int:
        return len(self.questions)


class IngestionPipeline:
    """
    Runs the full segmentation pipeline for a document and persists the result.

    Per-question work (composition, storage, upsert) runs concurrently and is
    isolated: one question's failure is recorded in the report and does not
    stop the others.

    Attributes:
        detector (QuestionBoundaryDetector): Boundary detection.
        composer (ImageComposer): Image composition and object storage.
        store (QuestionStore): Question records and page references.
        extractor (QuestionTextExtractor | None): Vision-model text extraction.
        rasterizer (PdfRasterizer): PDF rendering.
        ocr (OcrEngine | None): OCR for pages without a text layer.
        config (PipelineConfig): Pipeline settings.
    """

    def __init__(
        self,
        detector: QuestionBoundaryDetector,
        composer: ImageComposer,
        store: QuestionStore,
        extractor: QuestionTextExtractor | None = None,
        rasterizer: PdfRasterizer | None = None,
        ocr: OcrEngine | None = None,
        config: PipelineConfig | None = None,
    ):
        self.config = config or PipelineConfig()
        self.detector = detector
        self.composer = composer
        self.store = store
        self.extractor = extractor
        self.rasterizer = rasterizer or PdfRasterizer(dpi=self.config.render_dpi)
        self.ocr = ocr
        self.logger = get_logger("ingestion", level=logging.DEBUG)

    # ── Entry points ─────────────────────────────────────────

    def ingest_pdf(self, document_id: str, document_bytes: bytes) -> IngestionReport:
        """
        Rasterize a PDF and ingest its pages.

        Raises:
            IngestionError: With the failing stage and the number of questions written.
        """
        try:
            pages = self.rasterizer.render(document_bytes)
        except RasterizationError as exc:
            self.logger.error(f"[{document_id}] Rasterization failed: {exc}")
            raise IngestionError(IngestionStage.RASTERIZATION, 0, exc) from exc
        self.logger.info(f"[{document_id}] Rendered {len(pages)} page(s)")
        return self.ingest_pages(document_id, pages)

    def ingest_with_answer_key(
        self,
        document_id: str,
        document_bytes: bytes,
        answer_key_document_id: str,
        answer_key_bytes: bytes,
    ) -> tuple[IngestionReport, IngestionReport]:
        """
        Ingest an exam paper and its marking scheme, then link them.

        Returns:
            tuple[IngestionReport, IngestionReport]: Exam report, marking-scheme report.
        """
        exam_report = self.ingest_pdf(document_id, document_bytes)
        key_report = self.ingest_pdf(answer_key_document_id, answer_key_bytes)
        self.link_answer_key(document_id, answer_key_document_id)
        return exam_report, key_report

    def link_answer_key(self, document_id: str, answer_key_document_id: str) -> None:
        try:
            self.store.link_answer_key(document_id, answer_key_document_id)
        except StorageError as exc:
            raise IngestionError(IngestionStage.STORAGE, 0, exc) from exc
        self.logger.info(f"[{document_id}] Linked marking scheme {answer_key_document_id}")

    def ingest_pages(self, document_id: str, pages: list[Page]) -> IngestionReport:
        """
        Ingest an already-rasterized document.

        Args:
            document_id (str): Document identifier.
            pages (list[Page]): Pages numbered contiguously from 1.

        Returns:
            IngestionReport: Written records and per-question failures.

        Raises:
            IngestionError: If pages are invalid, detection finds nothing, page
                images cannot be stored, or no question could be written.
        """
        with Timer() as timer:
            try:
                corpus = PageCorpus(
                    document_id=document_id,
                    pages=sorted(pages, key=lambda p: p.page_number),
                )
            except ValidationError as exc:
                raise IngestionError(IngestionStage.RASTERIZATION, 0, exc) from exc

            pages = list(corpus.pages)
            if self.ocr is not None and self.config.run_ocr:
                pages = apply_ocr(pages, self.ocr, self.logger)

            self._store_pages(document_id, pages)
            boundaries = self._detect(document_id, pages)

            valid: list[QuestionBoundary] = []
            failures: dict[str, str] = {}
            for boundary in boundaries:
                if corpus.contains(boundary):
                    valid.append(boundary)
                else:
                    failures[boundary.key] = (
                        f"pages {boundary.start_page}-{boundary.end_page} outside document"
                    )

            texts = self._extract(valid, pages)
            records, question_failures, stage = self._write_questions(
                document_id, valid, pages, texts
            )
            failures.update(question_failures)

        if boundaries and not records:
            self.logger.error(f"[{document_id}] No question could be written: {failures}")
            if stage is None:
                stage = IngestionStage.STORAGE if valid else IngestionStage.DETECTION
            raise IngestionError(
                stage,
                0,
                ExtractionFailedError("; ".join(f"{k}: {v}" for k, v in failures.items())),
            )

        report = IngestionReport(
            document_id=document_id,
            page_count=len(pages),
            questions=sorted(records, key=lambda r: (r.page_numbers[0], r.question_number)),
            failures=failures,
            elapsed_seconds=timer.elapsed,
        )
        self.logger.info(
            f"[{document_id}] Ingested {report.succeeded} question(s), "
            f"{len(failures)} failure(s) in {timer.elapsed:.2f}s"
        )
        return report

    # ── Stages ───────────────────────────────────────────────

    def _store_pages(self, document_id: str, pages: list[Page]) -> None:
        refs: list[str] = []
        try:
            for page in pages:
                stored = self.composer.storage.put(
                    page_key(document_id, page.page_number), page.image_bytes
                )
                refs.append(stored.ref)
            self.store.save_page_refs(document_id, refs)
        except StorageError as exc:
            self.logger.error(f"[{document_id}] Failed to store page images: {exc}")
            raise IngestionError(IngestionStage.STORAGE, 0, exc) from exc

    def _detect(self, document_id: str, pages: list[Page]) -> list[QuestionBoundary]:
        try:
            boundaries = self.detector.detect(pages)
        except (EmptyCorpusError, ExtractionFailedError, MisformattedResponseError) as exc:
            self.logger.error(f"[{document_id}] Detection failed: {exc}")
            raise IngestionError(IngestionStage.DETECTION, 0, exc) from exc
        self.logger.info(
            f"[{document_id}] Detected questions: "
            + ", ".join(f"{b.key} (p{b.start_page}-{b.end_page})" for b in boundaries)
        )
        return boundaries

    def _extract(
        self, boundaries: list[QuestionBoundary], pages: list[Page]
    ) -> dict[str, str]:
        if self.extractor is None or not self.config.extraction.enabled:
            return {b.key: fallback_text(b, pages) for b in boundaries}
        return self.extractor.extract(boundaries, pages)

    def _write_question(
        self,
        document_id: str,
        boundary: QuestionBoundary,
        pages: list[Page],
        text: str,
    ) -> QuestionRecord:
        try:
            image = self.composer.compose(boundary, pages)
        except ValueError as exc:
            raise _QuestionFailure(IngestionStage.COMPOSITION, exc) from exc
        try:
            stored = self.composer.store(document_id, boundary.question_number, image)
            return self.store.upsert(
                document_id,
                boundary.question_number,
                list(boundary.pages),
                text,
                stored.ref,
            )
        except StorageError as exc:
            raise _QuestionFailure(IngestionStage.STORAGE, exc) from exc

    def _write_questions(
        self,
        document_id: str,
        boundaries: list[QuestionBoundary],
        pages: list[Page],
        texts: dict[str, str],
    ) -> tuple[list[QuestionRecord], dict[str, str], IngestionStage | None]:
        records: list[QuestionRecord] = []
        failures: dict[str, str] = {}
        stage: IngestionStage | None = None
        with ThreadPoolExecutor(max_workers=self.config.compose_workers) as executor:
            futures = {
                b.key: executor.submit(
                    self._write_question, document_id, b, pages, texts.get(b.key, "")
                )
                for b in boundaries
            }
            for key, future in futures.items():
                try:
                    records.append(future.result())
                except _QuestionFailure as exc:
                    stage = exc.stage
                    failures[key] = f"{exc.stage.value}: {exc.cause}"
                    self.logger.error(
                        f"[{document_id}] Question {key} failed at {exc.stage.value}: {exc.cause}"
                    )
                except Exception as exc:
                    # Unclassified errors are charged to the final (storage) stage.
                    stage = IngestionStage.STORAGE
                    failures[key] = f"{stage.value}: {exc!r}"
                    self.logger.exception(f"[{document_id}] Question {key} failed unexpectedly")
        return records, failures, stage


class _QuestionFailure(Exception):
    def __init__(self, stage: IngestionStage, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage.value}: {cause}")
