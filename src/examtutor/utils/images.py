"""
Small helpers for moving page images between bytes, PIL and base64.
"""

import base64
import io

from PIL import Image

__all__ = ["open_image", "to_jpeg_bytes", "to_base64", "guess_mime_type"]


def open_image(data: bytes) -> Image.Image:
    """
    Decode raster bytes into a fully loaded RGB PIL image.

    Raises:
        PIL.UnidentifiedImageError | OSError: If the bytes are not a decodable image.
    """
    image = Image.open(io.BytesIO(data))
    image.load()
    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def to_jpeg_bytes(image: Image.Image, quality: int = 85) -> bytes:
    """Encode a PIL image as JPEG."""
    if image.mode != "RGB":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def guess_mime_type(data: bytes) -> str:
    """Sniff the MIME type from magic bytes, defaulting to JPEG."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
