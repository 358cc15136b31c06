from typing import Any

from examtutor.exceptions import CompletionError
from examtutor.schema.completion import CompletionRequest, CompletionResponse
from examtutor.schema.enums import PartKind
from examtutor.utils import Timer, to_base64

from ..adapter import CompletionProvider
from ..http import post_json
from ..registry import register

__all__ = [
    "GeminiProvider",
]

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@register("gemini")
@register("google")
class GeminiProvider(CompletionProvider):
    """
    Backend for Google's Gemini generateContent API.
    """

    name = "gemini"

    def __init__(self, settings):
        super().__init__(settings)
        self.api_key = settings.require_key("gemini")
        self.model = settings.gemini_model

    def _build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        parts: list[dict[str, Any]] = []
        for part in request.parts:
            if part.kind is PartKind.TEXT:
                parts.append({"text": part.text})
            else:
                parts.append(
                    {
                        "inline_data": {
                            "mime_type": part.mime_type,
                            "data": to_base64(part.image),
                        }
                    }
                )

        policy = request.policy
        generation_config: dict[str, Any] = {
            "temperature": policy.temperature,
            "maxOutputTokens": policy.max_output_tokens,
        }
        if policy.top_p is not None:
            generation_config["topP"] = policy.top_p
        if policy.json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }
        if request.system:
            payload["systemInstruction"] = {"parts": [{"text": request.system}]}
        return payload

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        with Timer() as timer:
            data = post_json(
                self.name,
                GEMINI_URL.format(model=self.model),
                self._build_payload(request),
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key,
                },
                timeout=self.settings.request_timeout,
            )

        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback", {})
            raise CompletionError(self.name, f"no candidates returned: {feedback}")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        return CompletionResponse(
            text=text,
            provider=self.name,
            model=self.model,
            elapsed_seconds=timer.elapsed,
            finish_reason=candidate.get("finishReason"),
        )
