from abc import ABC, abstractmethod

from examtutor.config import ProviderSettings
from examtutor.schema.completion import CompletionRequest, CompletionResponse


class CompletionProvider(ABC):
    """
    Abstract base for all vision/text completion backends.

    Attributes:
        name (str): Registry key of the backend.
        model (str): Model name used for requests.
    """

    name: str = ""

    def __init__(self, settings: ProviderSettings):
        """
        Args:
            settings: Provider settings. Backends that need an API key must
                resolve it here so a missing key fails at construction time.
        """
        self.settings = settings
        self.model: str = ""

    @abstractmethod
    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Run one completion.

        Args:
            request (CompletionRequest): Ordered text/image parts, optional
                system instruction and generation policy.

        Returns:
            CompletionResponse: Generated text plus provider metadata.

        Raises:
            CompletionError: On any provider failure, with status and message attached.
        """
        ...

    @staticmethod
    def _json_instruction(request: CompletionRequest) -> str | None:
        """Extra instruction for backends without a native JSON response mode."""
        if request.policy.json_mode:
            return "Respond with valid JSON only. Do not wrap it in markdown."
        return None
