from examtutor.completion import CompletionClient
from examtutor.exceptions import CompletionError, OcrError
from examtutor.schema import CompletionPart, CompletionRequest, GenerationPolicy

from .base import OcrEngine, OcrResult

__all__ = ["TRANSCRIBE_PROMPT", "CompletionOcrEngine"]

TRANSCRIBE_PROMPT = """Extract ALL text from this image. This is a page of an academic exam paper.

1. Preserve mathematical symbols and operators exactly.
2. Use ^ for superscripts and _ for subscripts.
3. Keep ALL question numbers and answer options, each question number at the start of its line.
4. Keep line breaks.
5. Do NOT add explanations, output only the text."""


class CompletionOcrEngine(OcrEngine):
    """
    OCR by transcription through a vision-capable completion model.

    Confidence is not reported by the model and is always 0.
    """

    def __init__(self, client: CompletionClient, provider: str | None = None):
        self.client = client
        self.provider = provider
        self.policy = GenerationPolicy(temperature=0.0, max_output_tokens=4096)

    def extract_text(self, image: bytes) -> OcrResult:
        request = CompletionRequest(
            parts=[CompletionPart.from_text(TRANSCRIBE_PROMPT), CompletionPart.from_image(image)],
            policy=self.policy,
        )
        try:
            response = self.client.complete(request, self.provider)
        except CompletionError as exc:
            raise OcrError(str(exc)) from exc
        return OcrResult(text=response.text.strip())
