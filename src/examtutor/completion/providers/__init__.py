from .claude import ClaudeProvider
from .gemini import GeminiProvider
from .openai import OpenAIProvider
from .qwen import QwenProvider

__all__ = [
    "GeminiProvider",
    "OpenAIProvider",
    "ClaudeProvider",
    "QwenProvider",
]
