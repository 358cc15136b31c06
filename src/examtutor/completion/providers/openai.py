from typing import Any

from examtutor.exceptions import CompletionError
from examtutor.schema.completion import CompletionRequest, CompletionResponse
from examtutor.schema.enums import PartKind
from examtutor.utils import Timer, to_base64

from ..adapter import CompletionProvider
from ..http import post_json
from ..registry import register

__all__ = [
    "OpenAIProvider",
]

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


@register("openai")
class OpenAIProvider(CompletionProvider):
    """
    Backend for the OpenAI chat completions API with image inputs.
    """

    name = "openai"

    def __init__(self, settings):
        super().__init__(settings)
        self.api_key = settings.require_key("openai")
        self.model = settings.openai_model

    def _build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        content: list[dict[str, Any]] = []
        for part in request.parts:
            if part.kind is PartKind.TEXT:
                content.append({"type": "text", "text": part.text})
            else:
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:{part.mime_type};base64,{to_base64(part.image)}"
                        },
                    }
                )
        json_instruction = self._json_instruction(request)
        if json_instruction:
            content.append({"type": "text", "text": json_instruction})

        messages: list[dict[str, Any]] = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": content})

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": request.policy.max_output_tokens,
            "temperature": request.policy.temperature,
        }
        if request.policy.top_p is not None:
            payload["top_p"] = request.policy.top_p
        return payload

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        with Timer() as timer:
            data = post_json(
                self.name,
                OPENAI_URL,
                self._build_payload(request),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.settings.request_timeout,
            )

        choices = data.get("choices") or []
        if not choices:
            raise CompletionError(self.name, "no choices returned")
        choice = choices[0]
        return CompletionResponse(
            text=(choice.get("message") or {}).get("content") or "",
            provider=self.name,
            model=data.get("model", self.model),
            elapsed_seconds=timer.elapsed,
            finish_reason=choice.get("finish_reason"),
        )
