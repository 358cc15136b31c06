from .adapter import CompletionProvider
from .client import CompletionClient
from .providers import ClaudeProvider, GeminiProvider, OpenAIProvider, QwenProvider
from .registry import available_providers, get_provider_class, register

__all__ = [
    "CompletionProvider",
    "CompletionClient",
    "GeminiProvider",
    "OpenAIProvider",
    "ClaudeProvider",
    "QwenProvider",
    "register",
    "get_provider_class",
    "available_providers",
]
