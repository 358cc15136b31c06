from .base import OcrEngine, OcrResult, apply_ocr
from .tesseract import TesseractOcrEngine
from .vision import CompletionOcrEngine

__all__ = [
    "OcrEngine",
    "OcrResult",
    "apply_ocr",
    "TesseractOcrEngine",
    "CompletionOcrEngine",
]
