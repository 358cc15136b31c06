"""
Defines and loads completion-provider configuration (API keys, models, timeouts).

The settings object is built once and handed to the components that need it.
Nothing in the package reads provider keys from the environment on its own.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from examtutor.exceptions import ConfigurationError

__all__ = ["ProviderSettings"]


class ProviderSettings(BaseSettings):
    """
    Completion-provider settings loaded from environment variables and .env.

    Attributes:
        default_provider (str): Registry key used when a caller passes no selector.
        gemini_api_key (SecretStr | None): Google Generative Language API key.
        openai_api_key (SecretStr | None): OpenAI API key.
        claude_api_key (SecretStr | None): Anthropic API key.
        gemini_model (str): Gemini model name.
        openai_model (str): OpenAI model name.
        claude_model (str): Anthropic model name.
        local_model_path (str): Hugging Face hub ID or path for the local VLM backend.
        local_device (str): Torch device for the local VLM backend.
        request_timeout (float): Per-request timeout in seconds.
        max_retries (int): Retries on transient failures (0 or 1).
    """

    default_provider: str = Field("gemini", description="Default provider key")

    gemini_api_key: SecretStr | None = Field(None, description="Gemini API key")
    openai_api_key: SecretStr | None = Field(None, description="OpenAI API key")
    claude_api_key: SecretStr | None = Field(None, description="Anthropic API key")

    gemini_model: str = Field("gemini-2.0-flash-exp", description="Gemini model")
    openai_model: str = Field("gpt-4o", description="OpenAI model")
    claude_model: str = Field(
        "claude-3-5-sonnet-20241022", description="Anthropic model"
    )

    local_model_path: str = Field(
        "Qwen/Qwen2.5-VL-3B-Instruct", description="Local VLM hub ID or path"
    )
    local_device: str = Field("auto", description="Device map for the local VLM")

    request_timeout: float = Field(
        60.0, gt=0.0, description="Per-request timeout in seconds"
    )
    max_retries: int = Field(
        1, ge=0, le=1, description="Retries on transient provider failures"
    )

    model_config = SettingsConfigDict(
        env_prefix="EXAMTUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def require_key(self, provider: str) -> str:
        """
        Return the API key for `provider` or fail immediately.

        Args:
            provider (str): One of 'gemini', 'openai', 'claude'.

        Returns:
            str: The secret value.

        Raises:
            ConfigurationError: If the key is not configured.
        """
        secret: SecretStr | None = getattr(self, f"{provider.lower()}_api_key", None)
        if secret is None or not secret.get_secret_value().strip():
            raise ConfigurationError(
                f"No API key configured for provider '{provider}'. "
                f"Set EXAMTUTOR_{provider.upper()}_API_KEY."
            )
        return secret.get_secret_value()
