from pydantic import BaseModel, Field

__all__ = ["GenerationPolicy"]


class GenerationPolicy(BaseModel):
    """
    Provider-agnostic generation settings for one completion request.

    Attributes:
        temperature (float): Sampling temperature (>= 0).
        max_output_tokens (int): Upper bound on generated tokens.
        top_p (float | None): Nucleus sampling threshold, provider default if None.
        json_mode (bool): Ask the provider to respond with JSON only.
    """

    temperature: float = Field(0.7, ge=0.0, description="Sampling temperature.")
    max_output_tokens: int = Field(
        2048, gt=0, description="Maximum number of generated tokens."
    )
    top_p: float | None = Field(
        None,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling cumulative probability threshold.",
    )
    json_mode: bool = Field(False, description="Request a JSON-only response.")
