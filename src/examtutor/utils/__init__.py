"""
Package utils: re-export all utility functions for easy import.
"""

from .images import guess_mime_type, open_image, to_base64, to_jpeg_bytes
from .logger import get_logger
from .timer import Timer

__all__ = [
    "get_logger",
    "Timer",
    "open_image",
    "to_jpeg_bytes",
    "to_base64",
    "guess_mime_type",
]
