from typing import Type

from .adapter import CompletionProvider

__all__ = ["register", "get_provider_class", "available_providers"]

_registry: dict[str, Type[CompletionProvider]] = {}


def register(name: str):
    """
    Decorator to register a CompletionProvider under a given key.
    Matching is case‐insensitive.
    """

    def decorator(cls: Type[CompletionProvider]) -> Type[CompletionProvider]:
        _registry[name.lower()] = cls
        return cls

    return decorator


def get_provider_class(name: str) -> Type[CompletionProvider]:
    """
    Lookup a CompletionProvider by key.
    Raises ValueError if no matching provider is found.
    """
    key = name.lower()
    if key in _registry:
        return _registry[key]
    available = ", ".join(_registry.keys())
    raise ValueError(
        f"No completion provider registered for '{name}'. Available providers: {available}"
    )


def available_providers() -> list[str]:
    return sorted(_registry.keys())
