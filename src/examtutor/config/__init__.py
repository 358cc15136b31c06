"""
Package 'config':
    Setting classes and instances for loading configuration from environment variables.
"""

from .logging import LoggingSettings, logging_settings
from .providers import ProviderSettings
from .service import ServiceSettings

__all__ = [
    "LoggingSettings",
    "logging_settings",
    "ProviderSettings",
    "ServiceSettings",
]
