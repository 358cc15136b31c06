import pytesseract
from PIL import Image

from examtutor.exceptions import OcrError
from examtutor.utils import open_image

from .base import OcrEngine, OcrResult

__all__ = ["TesseractOcrEngine"]


class TesseractOcrEngine(OcrEngine):
    """
    OCR through the Tesseract engine.

    Requires the `tesseract` binary on PATH (or `tesseract_cmd`).
    """

    def __init__(self, lang: str = "eng", config: str = "--psm 4", tesseract_cmd: str | None = None):
        self.lang = lang
        self.config = config
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract_text(self, image: bytes) -> OcrResult:
        try:
            pil_image = open_image(image).convert("L")
            text = pytesseract.image_to_string(pil_image, lang=self.lang, config=self.config)
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.lang,
                config=self.config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, OSError, Image.DecompressionBombError) as exc:
            raise OcrError(str(exc)) from exc

        scores = []
        for value in data.get("conf", []):
            try:
                score = float(value)
            except (TypeError, ValueError):
                continue
            if score >= 0:
                scores.append(score)
        confidence = sum(scores) / len(scores) / 100 if scores else 0.0
        return OcrResult(text=text.strip(), confidence=min(confidence, 1.0))
