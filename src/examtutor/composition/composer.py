"""
Builds one representative image per question: crops the header/barcode band
off every page of the question and stitches multi-page questions vertically.
"""

import logging

from PIL import Image

from examtutor.schema import (
    ComposerConfig,
    Page,
    QuestionBoundary,
    StoredImage,
    normalize_question_number,
)
from examtutor.storage import ObjectStorage
from examtutor.utils import get_logger, guess_mime_type, open_image, to_jpeg_bytes

__all__ = ["storage_key", "stitch_vertically", "ImageComposer"]

WHITE = (255, 255, 255)


def storage_key(document_id: str, question_number: str) -> str:
    """Deterministic object-storage key for a question's representative image."""
    return f"{document_id}/question_{normalize_question_number(question_number)}.jpg"


def stitch_vertically(images: list[Image.Image]) -> Image.Image:
    """
    Stack images top to bottom on a white canvas as wide as the widest input.

    Narrower images are centered horizontally.
    """
    width = max(image.width for image in images)
    height = sum(image.height for image in images)
    canvas = Image.new("RGB", (width, height), color=WHITE)
    y = 0
    for image in images:
        canvas.paste(image, ((width - image.width) // 2, y))
        y += image.height
    return canvas


class ImageComposer:
    """
    Composes and stores representative question images.

    Attributes:
        storage (ObjectStorage): Destination for composed images.
        config (ComposerConfig): Crop ratio and JPEG quality.
    """

    def __init__(self, storage: ObjectStorage, config: ComposerConfig | None = None):
        self.storage = storage
        self.config = config or ComposerConfig()
        self.logger = get_logger("ingestion", level=logging.DEBUG)

    def crop_header(self, image_bytes: bytes) -> bytes:
        """
        Remove the top `crop_top_ratio` of the image and re-encode it as JPEG.

        Returns the original bytes unchanged if the image cannot be decoded.
        """
        ratio = self.config.crop_top_ratio
        try:
            image = open_image(image_bytes)
            if ratio > 0:
                top = int(image.height * ratio)
                image = image.crop((0, top, image.width, image.height))
            return to_jpeg_bytes(image, quality=self.config.jpeg_quality)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            self.logger.warning(f"Could not crop page image, using it uncropped: {exc}")
            return image_bytes

    def compose(self, boundary: QuestionBoundary, pages: list[Page]) -> bytes:
        """
        Build the representative image for one question.

        Args:
            boundary (QuestionBoundary): The question's page span.
            pages (list[Page]): The document's pages (any order).

        Returns:
            bytes: Encoded image of the question.

        Raises:
            ValueError: If no page falls inside the boundary's span.
        """
        selected = sorted(
            (p for p in pages if boundary.start_page <= p.page_number <= boundary.end_page),
            key=lambda p: p.page_number,
        )
        if not selected:
            raise ValueError(
                f"no pages found for question {boundary.question_number!r} "
                f"(pages {boundary.start_page}-{boundary.end_page})"
            )

        cropped = [self.crop_header(page.image_bytes) for page in selected]
        if len(cropped) == 1:
            return cropped[0]

        decoded: list[Image.Image] = []
        for page, data in zip(selected, cropped):
            try:
                decoded.append(open_image(data))
            except (OSError, ValueError, Image.DecompressionBombError) as exc:
                self.logger.warning(
                    f"Skipping undecodable page {page.page_number} of question "
                    f"{boundary.question_number} while stitching: {exc}"
                )
        if not decoded:
            return cropped[0]
        if len(decoded) == 1:
            return to_jpeg_bytes(decoded[0], quality=self.config.jpeg_quality)
        return to_jpeg_bytes(stitch_vertically(decoded), quality=self.config.jpeg_quality)

    def store(self, document_id: str, question_number: str, image: bytes) -> StoredImage:
        """
        Write the image under the question's deterministic key, overwriting.

        The content type is sniffed from the bytes, since an undecodable page is
        stored as uploaded.
        """
        return self.storage.put(
            storage_key(document_id, question_number),
            image,
            content_type=guess_mime_type(image),
        )

    def compose_and_store(
        self, document_id: str, boundary: QuestionBoundary, pages: list[Page]
    ) -> StoredImage:
        return self.store(document_id, boundary.question_number, self.compose(boundary, pages))
