from typing import Any

from examtutor.exceptions import CompletionError
from examtutor.schema.completion import CompletionRequest, CompletionResponse
from examtutor.schema.enums import PartKind
from examtutor.utils import Timer, open_image

from ..adapter import CompletionProvider
from ..registry import register

__all__ = [
    "QwenProvider",
]


@register("qwen2.5-vl")
@register("qwen")
@register("local")
class QwenProvider(CompletionProvider):
    """
    Local backend running the Qwen2.5-VL vision-language model through transformers.

    The model is loaded on first use. Requires the `local` extra (torch, transformers).
    """

    name = "qwen"

    def __init__(self, settings):
        super().__init__(settings)
        self.model = settings.local_model_path
        self._model: Any = None
        self._processor: Any = None

    def load(self) -> None:
        if self._model is not None:
            return
        import torch
        from transformers import AutoProcessor, Qwen2_5_VLForConditionalGeneration

        self._model = Qwen2_5_VLForConditionalGeneration.from_pretrained(
            self.model,
            torch_dtype=torch.bfloat16,
            device_map=self.settings.local_device,
        ).eval()
        self._processor = AutoProcessor.from_pretrained(self.model, use_fast=True)

    def _build_messages(self, request: CompletionRequest) -> tuple[list[dict], list]:
        images = []
        content: list[dict[str, Any]] = []
        for part in request.parts:
            if part.kind is PartKind.TEXT:
                content.append({"type": "text", "text": part.text})
            else:
                image = open_image(part.image)
                images.append(image)
                content.append({"type": "image", "image": image})
        json_instruction = self._json_instruction(request)
        if json_instruction:
            content.append({"type": "text", "text": json_instruction})

        messages: list[dict[str, Any]] = []
        if request.system:
            messages.append(
                {"role": "system", "content": [{"type": "text", "text": request.system}]}
            )
        messages.append({"role": "user", "content": content})
        return messages, images

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        try:
            self.load()
            import torch

            with Timer() as timer:
                messages, images = self._build_messages(request)
                chat = self._processor.apply_chat_template(
                    messages, tokenize=False, add_generation_prompt=True
                )
                model_inputs = self._processor(
                    text=[chat],
                    images=images or None,
                    return_tensors="pt",
                ).to(self._model.device)

                prompt_length = model_inputs["input_ids"].shape[1]
                policy = request.policy
                generation_kwargs: dict[str, Any] = {
                    "max_new_tokens": policy.max_output_tokens,
                    "do_sample": policy.temperature > 0,
                }
                if policy.temperature > 0:
                    generation_kwargs["temperature"] = policy.temperature
                if policy.top_p is not None:
                    generation_kwargs["top_p"] = policy.top_p

                with torch.inference_mode():
                    outputs = self._model.generate(**model_inputs, **generation_kwargs)
                    generated_ids = outputs[0, prompt_length:]
                    decoded_text = self._processor.decode(
                        generated_ids,
                        skip_special_tokens=True,
                        clean_up_tokenization_spaces=True,
                    )
        except ImportError as exc:
            raise CompletionError(
                self.name, f"local backend unavailable, install the 'local' extra: {exc}"
            ) from exc
        except (RuntimeError, ValueError, OSError) as exc:
            raise CompletionError(self.name, str(exc)) from exc

        return CompletionResponse(
            text=decoded_text,
            provider=self.name,
            model=self.model,
            elapsed_seconds=timer.elapsed,
        )
