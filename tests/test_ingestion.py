"""
Tests for the ingestion job: rasterization, OCR, text extraction and the
end-to-end pipeline over in-memory stores.
"""

import unittest
from unittest.mock import MagicMock, patch

from examtutor.composition import ImageComposer
from examtutor.detection import QuestionBoundaryDetector
from examtutor.exceptions import (
    CompletionError,
    IngestionError,
    OcrError,
    RasterizationError,
    StorageError,
)
from examtutor.ingestion import IngestionPipeline, QuestionTextExtractor, page_key
from examtutor.ocr import (
    CompletionOcrEngine,
    OcrEngine,
    OcrResult,
    TesseractOcrEngine,
    apply_ocr,
)
from examtutor.rasterization import PdfRasterizer
from examtutor.schema import (
    DetectionMode,
    DetectorConfig,
    ExtractionConfig,
    IngestionStage,
    QuestionBoundary,
    normalize_question_number,
)
from examtutor.storage import InMemoryObjectStorage, InMemoryQuestionStore
from examtutor.utils import open_image

from tests.fakes import FakeProvider, make_client, make_pages, make_pdf

THREE_PAGE_EXAM = (
    "Question 1\nCalculate the area of the triangle.",
    "Show your working clearly.",
    "Question 2\nFind the value of x.",
)


class FailingObjectStorage(InMemoryObjectStorage):
    """Rejects writes whose key contains `fail_on`."""

    def __init__(self, fail_on: str):
        super().__init__()
        self.fail_on = fail_on

    def put(self, key, data, content_type="image/jpeg"):
        if self.fail_on in key:
            raise StorageError(f"disk full writing {key}")
        return super().put(key, data, content_type)


class StaticOcrEngine(OcrEngine):
    def __init__(self, texts):
        self.texts = list(texts)

    def extract_text(self, image):
        text = self.texts.pop(0)
        if isinstance(text, Exception):
            raise text
        return OcrResult(text=text, confidence=0.9)


def text_pipeline(storage=None, store=None, **kwargs) -> IngestionPipeline:
    storage = storage or InMemoryObjectStorage()
    return IngestionPipeline(
        detector=QuestionBoundaryDetector(DetectorConfig(mode=DetectionMode.TEXT)),
        composer=ImageComposer(storage),
        store=store or InMemoryQuestionStore(),
        **kwargs,
    )


class TestIngestionPipeline(unittest.TestCase):
    """End-to-end ingestion over in-memory stores."""

    def test_three_page_exam(self):
        storage = InMemoryObjectStorage()
        store = InMemoryQuestionStore()
        report = text_pipeline(storage, store).ingest_pages("exam", make_pages(*THREE_PAGE_EXAM))

        self.assertEqual(
            {r.question_number: r.page_numbers for r in report.questions},
            {"1": [1, 2], "2": [3]},
        )
        self.assertEqual(report.succeeded, 2)
        self.assertEqual(report.page_count, 3)
        self.assertEqual(report.failures, {})

        q1 = store.lookup("exam", "Q1")
        self.assertIn("Calculate the area", q1.extracted_text)
        self.assertEqual(q1.image_ref, "memory://exam/question_1.jpg")
        self.assertEqual(open_image(storage.get("exam/question_1.jpg")).size, (120, 176))

        self.assertEqual(
            store.page_refs("exam"),
            [f"memory://{page_key('exam', n)}" for n in (1, 2, 3)],
        )
        self.assertEqual(page_key("exam", 2), "exam/page_0002.jpg")

    def test_reingestion_overwrites(self):
        storage = InMemoryObjectStorage()
        store = InMemoryQuestionStore()
        pipeline = text_pipeline(storage, store)
        pipeline.ingest_pages("exam", make_pages(*THREE_PAGE_EXAM))
        pipeline.ingest_pages("exam", make_pages("Question 1\nRewritten.", "Question 2\nAlso."))
        self.assertEqual(store.lookup("exam", "1").page_numbers, [1])
        self.assertEqual(store.lookup("exam", "1").extracted_text, "Question 1\nRewritten.")
        self.assertEqual(len(store.page_refs("exam")), 2)

    def test_merged_detection_with_model_text(self):
        def respond(request):
            if request.policy.json_mode:
                return (
                    '[{"questionNumber": "1", "startPage": 1, "endPage": 1, "fullText": "a"},'
                    ' {"questionNumber": "3", "startPage": 3, "endPage": 3, "fullText": "c"}]'
                )
            return "Transcribed question"

        provider = FakeProvider(default=respond)
        client = make_client(provider)
        store = InMemoryQuestionStore()
        pipeline = IngestionPipeline(
            detector=QuestionBoundaryDetector(client=client),
            composer=ImageComposer(InMemoryObjectStorage()),
            store=store,
            extractor=QuestionTextExtractor(client, ExtractionConfig(batch_pause_seconds=0)),
        )
        pages = make_pages("Question 1 Name the gas.", "Question 2 State the law.", "")
        report = pipeline.ingest_pages("exam", pages)

        self.assertEqual([r.question_number for r in report.questions], ["1", "2", "3"])
        self.assertEqual(store.lookup("exam", "3").extracted_text, "Transcribed question")

    def test_out_of_range_boundary_is_recorded(self):
        detector = MagicMock()
        detector.detect.return_value = [
            QuestionBoundary(question_number="1", start_page=1, end_page=1, full_text="a"),
            QuestionBoundary(question_number="2", start_page=2, end_page=5, full_text="b"),
        ]
        pipeline = IngestionPipeline(
            detector=detector,
            composer=ImageComposer(InMemoryObjectStorage()),
            store=InMemoryQuestionStore(),
        )
        report = pipeline.ingest_pages("exam", make_pages("a", "b"))
        self.assertEqual(report.succeeded, 1)
        self.assertIn("2", report.failures)

    def test_detection_failure(self):
        with self.assertRaises(IngestionError) as ctx:
            text_pipeline().ingest_pages("exam", make_pages("", ""))
        self.assertEqual(ctx.exception.stage, IngestionStage.DETECTION)
        self.assertEqual(ctx.exception.succeeded, 0)

    def test_non_contiguous_pages_are_rejected(self):
        pages = make_pages("Question 1 a", "b", "c")
        with self.assertRaises(IngestionError) as ctx:
            text_pipeline().ingest_pages("exam", [pages[0], pages[2]])
        self.assertEqual(ctx.exception.stage, IngestionStage.RASTERIZATION)

    def test_page_storage_failure(self):
        with self.assertRaises(IngestionError) as ctx:
            text_pipeline(FailingObjectStorage("page_")).ingest_pages(
                "exam", make_pages(*THREE_PAGE_EXAM)
            )
        self.assertEqual(ctx.exception.stage, IngestionStage.STORAGE)

    def test_one_question_failure_is_isolated(self):
        storage = FailingObjectStorage("question_2")
        report = text_pipeline(storage).ingest_pages("exam", make_pages(*THREE_PAGE_EXAM))
        self.assertEqual([r.question_number for r in report.questions], ["1"])
        self.assertTrue(report.failures["2"].startswith("storage"))

    def test_unexpected_error_in_one_question_is_isolated(self):
        store = InMemoryQuestionStore()
        original_upsert = store.upsert

        def upsert(document_id, question_number, *args):
            if normalize_question_number(question_number) == "2":
                raise RuntimeError("record rejected")
            return original_upsert(document_id, question_number, *args)

        store.upsert = upsert
        report = text_pipeline(store=store).ingest_pages("exam", make_pages(*THREE_PAGE_EXAM))
        self.assertEqual([r.question_number for r in report.questions], ["1"])
        self.assertIn("record rejected", report.failures["2"])
        self.assertIsNotNone(store.lookup("exam", "1"))

    def test_repeated_model_label_keeps_first_boundary(self):
        provider = FakeProvider(
            default=(
                '[{"questionNumber": "1", "startPage": 1, "endPage": 1, "fullText": "first"},'
                ' {"questionNumber": "Q1", "startPage": 2, "endPage": 3, "fullText": "second"}]'
            )
        )
        store = InMemoryQuestionStore()
        pipeline = IngestionPipeline(
            detector=QuestionBoundaryDetector(
                DetectorConfig(mode=DetectionMode.GENERATIVE), make_client(provider)
            ),
            composer=ImageComposer(InMemoryObjectStorage()),
            store=store,
        )
        report = pipeline.ingest_pages("exam", make_pages("a", "b", "c"))

        self.assertEqual(
            [(r.question_number, r.page_numbers, r.extracted_text) for r in report.questions],
            [("1", [1], "first")],
        )
        stored = store.lookup("exam", "1")
        self.assertEqual(stored.page_numbers, [1])
        self.assertEqual(stored.extracted_text, "first")

    def test_every_question_failing(self):
        storage = FailingObjectStorage("question_")
        with self.assertRaises(IngestionError) as ctx:
            text_pipeline(storage).ingest_pages("exam", make_pages(*THREE_PAGE_EXAM))
        self.assertEqual(ctx.exception.stage, IngestionStage.STORAGE)
        self.assertEqual(ctx.exception.succeeded, 0)

    def test_ocr_fills_pages_without_text(self):
        ocr = StaticOcrEngine(["Question 1\nFrom OCR.", "Question 2\nAlso OCR."])
        pipeline = text_pipeline(ocr=ocr)
        report = pipeline.ingest_pages("exam", make_pages("", ""))
        self.assertEqual([r.question_number for r in report.questions], ["1", "2"])

    def test_pdf_entry_point(self):
        store = InMemoryQuestionStore()
        report = text_pipeline(store=store).ingest_pdf(
            "exam", make_pdf("Question 1 Define speed.", "Question 2 Define velocity.")
        )
        self.assertEqual({r.question_number: r.page_numbers for r in report.questions},
                         {"1": [1], "2": [2]})

    def test_answer_key_is_linked(self):
        store = InMemoryQuestionStore()
        pipeline = text_pipeline(store=store)
        pipeline.ingest_with_answer_key(
            "exam",
            make_pdf("Question 1 Define speed."),
            "exam_ms",
            make_pdf("Question 1 distance / time [2]"),
        )
        self.assertEqual(store.get_answer_key("exam"), "exam_ms")
        self.assertIsNotNone(store.lookup("exam_ms", "1"))

    def test_bad_pdf(self):
        with self.assertRaises(IngestionError) as ctx:
            text_pipeline().ingest_pdf("exam", b"%PDF-not really")
        self.assertEqual(ctx.exception.stage, IngestionStage.RASTERIZATION)


class TestQuestionTextExtractor(unittest.TestCase):
    """Batched per-question text extraction."""

    def setUp(self):
        self.pages = make_pages("Question 1 a", "Question 2 b", "Question 3 c", "Question 4 d")
        self.boundaries = [
            QuestionBoundary(question_number=str(n), start_page=n, end_page=n, full_text=f"Q{n} text")
            for n in range(1, 5)
        ]

    def test_batches_pause_between_batches_only(self):
        sleep = MagicMock()
        provider = FakeProvider(default="model text")
        extractor = QuestionTextExtractor(
            make_client(provider),
            ExtractionConfig(batch_size=3, batch_pause_seconds=1.5),
            sleep=sleep,
        )
        texts = extractor.extract(self.boundaries, self.pages)
        self.assertEqual(texts, {str(n): "model text" for n in range(1, 5)})
        sleep.assert_called_once_with(1.5)
        self.assertEqual(len(provider.requests), 4)

    def test_failure_keeps_detected_text(self):
        def respond(request):
            if "question 2" in request.parts[0].text:
                raise CompletionError("fake", "refused", status=400)
            return "model text"

        provider = FakeProvider(default=respond)
        extractor = QuestionTextExtractor(
            make_client(provider), ExtractionConfig(batch_pause_seconds=0)
        )
        texts = extractor.extract(self.boundaries, self.pages)
        self.assertEqual(texts["2"], "Q2 text")
        self.assertEqual(texts["1"], "model text")

    def test_request_contains_only_the_span(self):
        extractor = QuestionTextExtractor(make_client(FakeProvider()))
        boundary = QuestionBoundary(question_number="2", start_page=2, end_page=3)
        request = extractor.build_request(boundary, self.pages)
        self.assertEqual(request.image_count, 2)

    def test_empty_model_text_falls_back_to_ocr(self):
        extractor = QuestionTextExtractor(make_client(FakeProvider(default="  ")))
        boundary = QuestionBoundary(question_number="3", start_page=3, end_page=3)
        self.assertEqual(extractor.extract_one(boundary, self.pages), "Question 3 c")


class TestRasterizationAndOcr(unittest.TestCase):
    """PDF rendering and OCR engines."""

    def test_render_pages_with_text_layer(self):
        pages = PdfRasterizer(dpi=72).render(make_pdf("Question 1 Define speed.", "Page two"))
        self.assertEqual([p.page_number for p in pages], [1, 2])
        self.assertIn("Question 1", pages[0].ocr_text)
        self.assertGreater(open_image(pages[0].image_bytes).width, 0)

    def test_render_without_text_layer(self):
        pages = PdfRasterizer(dpi=72, extract_text=False).render(make_pdf("Question 1"))
        self.assertEqual(pages[0].ocr_text, "")

    def test_render_rejects_empty_and_garbage(self):
        with self.assertRaises(RasterizationError):
            PdfRasterizer().render(b"")
        with self.assertRaises(RasterizationError):
            PdfRasterizer().render(b"definitely not a pdf")

    def test_apply_ocr_only_fills_empty_pages(self):
        pages = make_pages("already here", "", "")
        engine = StaticOcrEngine(["from ocr", OcrError("tesseract crashed")])
        result = apply_ocr(pages, engine, MagicMock())
        self.assertEqual([p.ocr_text for p in result], ["already here", "from ocr", ""])

    @patch("examtutor.ocr.tesseract.pytesseract")
    def test_tesseract_confidence(self, mock_tesseract):
        mock_tesseract.image_to_string.return_value = "Question 1\n"
        mock_tesseract.image_to_data.return_value = {"conf": ["90", "-1", "70", "x"]}
        result = TesseractOcrEngine().extract_text(make_pages("")[0].image_bytes)
        self.assertEqual(result.text, "Question 1")
        self.assertAlmostEqual(result.confidence, 0.8)

    def test_vision_ocr(self):
        engine = CompletionOcrEngine(make_client(FakeProvider(default=" Question 1 \n")))
        self.assertEqual(engine.extract_text(make_pages("")[0].image_bytes).text, "Question 1")

    def test_vision_ocr_failure(self):
        provider = FakeProvider([CompletionError("fake", "down", status=400)])
        engine = CompletionOcrEngine(make_client(provider))
        with self.assertRaises(OcrError):
            engine.extract_text(make_pages("")[0].image_bytes)


if __name__ == "__main__":
    unittest.main()
