from typing import Any

from examtutor.exceptions import CompletionError
from examtutor.schema.completion import CompletionRequest, CompletionResponse
from examtutor.schema.enums import PartKind
from examtutor.utils import Timer, to_base64

from ..adapter import CompletionProvider
from ..http import post_json
from ..registry import register

__all__ = [
    "ClaudeProvider",
]

CLAUDE_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


@register("claude")
@register("anthropic")
class ClaudeProvider(CompletionProvider):
    """
    Backend for the Anthropic messages API with base64 image blocks.
    """

    name = "claude"

    def __init__(self, settings):
        super().__init__(settings)
        self.api_key = settings.require_key("claude")
        self.model = settings.claude_model

    def _build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        content: list[dict[str, Any]] = []
        for part in request.parts:
            if part.kind is PartKind.TEXT:
                content.append({"type": "text", "text": part.text})
            else:
                content.append(
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": part.mime_type,
                            "data": to_base64(part.image),
                        },
                    }
                )
        json_instruction = self._json_instruction(request)
        if json_instruction:
            content.append({"type": "text", "text": json_instruction})

        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.policy.max_output_tokens,
            "temperature": min(request.policy.temperature, 1.0),
            "messages": [{"role": "user", "content": content}],
        }
        if request.system:
            payload["system"] = request.system
        if request.policy.top_p is not None:
            payload["top_p"] = request.policy.top_p
        return payload

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        with Timer() as timer:
            data = post_json(
                self.name,
                CLAUDE_URL,
                self._build_payload(request),
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                timeout=self.settings.request_timeout,
            )

        blocks = data.get("content") or []
        if not blocks:
            raise CompletionError(self.name, "no content blocks returned")
        text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
        return CompletionResponse(
            text=text,
            provider=self.name,
            model=data.get("model", self.model),
            elapsed_seconds=timer.elapsed,
            finish_reason=data.get("stop_reason"),
        )
