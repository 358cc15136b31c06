import logging
import time

from examtutor.config import ProviderSettings
from examtutor.exceptions import CompletionError
from examtutor.schema.completion import CompletionRequest, CompletionResponse
from examtutor.utils import get_logger

from .adapter import CompletionProvider
from .registry import get_provider_class


class CompletionClient:
    """
    Single entry point to the completion capability.

    Selects a backend by key, lazily instantiates it from settings, and applies
    the retry policy: at most `settings.max_retries` retries, only for transient
    failures. Timeouts are enforced by the backends from `settings.request_timeout`.

    Attributes:
        settings (ProviderSettings): Provider configuration.
        default_provider (str): Key used when no selector is passed.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        providers: dict[str, CompletionProvider] | None = None,
        *,
        eager: bool = True,
        retry_delay: float = 1.0,
    ):
        """
        Args:
            settings: Provider settings.
            providers: Pre-built backends keyed by selector, used instead of the registry.
            eager: Build the default backend immediately so a missing key fails here.
            retry_delay: Seconds to wait before the single retry.
        """
        self.settings = settings
        self.default_provider = settings.default_provider.lower()
        self.retry_delay = retry_delay
        self._instances: dict[str, CompletionProvider] = {
            key.lower(): provider for key, provider in (providers or {}).items()
        }
        self.logger = get_logger("completion", level=logging.DEBUG)
        if eager:
            self.provider(self.default_provider)

    def provider(self, name: str | None = None) -> CompletionProvider:
        """
        Return (building if needed) the backend registered under `name`.

        Raises:
            ValueError: If no backend is registered under `name`.
            ConfigurationError: If the backend's API key is missing.
        """
        key = (name or self.default_provider).lower()
        if key not in self._instances:
            provider_cls = get_provider_class(key)
            self._instances[key] = provider_cls(self.settings)
        return self._instances[key]

    def complete(
        self, request: CompletionRequest, provider: str | None = None
    ) -> CompletionResponse:
        """
        Run a completion against the selected backend.

        Args:
            request (CompletionRequest): Parts, system instruction and policy.
            provider (str | None): Backend key; the default provider if None.

        Returns:
            CompletionResponse: The backend's response.

        Raises:
            CompletionError: When the backend fails permanently or the retry also fails.
        """
        backend = self.provider(provider)
        attempts = 1 + self.settings.max_retries
        attempt = 1
        while True:
            try:
                response = backend.complete(request)
                break
            except CompletionError as exc:
                if exc.transient and attempt < attempts:
                    self.logger.warning(
                        f"Transient failure from {backend.name} (attempt {attempt}/{attempts}): {exc}"
                    )
                    attempt += 1
                    time.sleep(self.retry_delay)
                    continue
                self.logger.error(f"Completion failed on {backend.name}: {exc}")
                raise

        self.logger.info(
            f"{backend.name}/{response.model}: {request.image_count} image(s), "
            f"{len(response.text)} chars in {response.elapsed_seconds:.2f}s"
        )
        if response.finish_reason and response.finish_reason.upper() not in {
            "STOP",
            "END_TURN",
        }:
            self.logger.warning(
                f"{backend.name} response may be incomplete (finish reason {response.finish_reason})"
            )
        return response
