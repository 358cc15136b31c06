"""
Request/response models for the vision/text completion capability.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from examtutor.utils.images import guess_mime_type

from .config.generation import GenerationPolicy
from .enums import PartKind

__all__ = [
    "CompletionPart",
    "CompletionRequest",
    "CompletionResponse",
]


class CompletionPart(BaseModel):
    """
    One ordered element of a completion prompt: either text or an image.

    Attributes:
        kind (PartKind): "text" or "image".
        text (str | None): Text content for text parts.
        image (bytes | None): Encoded image bytes for image parts.
        mime_type (str): MIME type of `image`.
    """

    kind: PartKind
    text: str | None = None
    image: bytes | None = Field(None, repr=False)
    mime_type: str = "image/jpeg"

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_payload(self):
        if self.kind is PartKind.TEXT and self.text is None:
            raise ValueError("text parts require `text`")
        if self.kind is PartKind.IMAGE and not self.image:
            raise ValueError("image parts require non-empty `image`")
        return self

    @classmethod
    def from_text(cls, text: str) -> "CompletionPart":
        return cls(kind=PartKind.TEXT, text=text)

    @classmethod
    def from_image(cls, data: bytes, mime_type: str | None = None) -> "CompletionPart":
        return cls(
            kind=PartKind.IMAGE, image=data, mime_type=mime_type or guess_mime_type(data)
        )


class CompletionRequest(BaseModel):
    """
    Input for a completion provider.

    Attributes:
        parts (list[CompletionPart]): Ordered text and image parts.
        system (str | None): Optional system instruction.
        policy (GenerationPolicy): Generation settings.
    """

    parts: list[CompletionPart]
    system: str | None = None
    policy: GenerationPolicy = Field(default_factory=GenerationPolicy)

    @model_validator(mode="after")
    def _ensure_non_empty(self):
        if not self.parts:
            raise ValueError("`parts` cannot be empty")
        return self

    @property
    def image_count(self) -> int:
        return sum(1 for part in self.parts if part.kind is PartKind.IMAGE)


class CompletionResponse(BaseModel):
    """
    Output of a completion provider.

    Attributes:
        text (str): Generated text.
        provider (str): Provider key that produced it.
        model (str): Model name reported for the call.
        elapsed_seconds (float): Wall-clock duration of the call.
        finish_reason (str | None): Provider stop reason, when reported.
    """

    text: str
    provider: str
    model: str
    elapsed_seconds: float = 0.0
    finish_reason: str | None = None
