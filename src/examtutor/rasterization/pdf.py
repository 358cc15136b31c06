"""
Renders PDF documents into per-page images with PyMuPDF.
"""

import pymupdf

from examtutor.exceptions import RasterizationError
from examtutor.schema import Page

__all__ = ["PdfRasterizer"]


class PdfRasterizer:
    """
    Rasterization capability: PDF bytes in, ordered Page list out.

    Attributes:
        dpi (int): Render resolution.
        jpeg_quality (int): Quality of the encoded page images.
        extract_text (bool): Use the PDF's embedded text layer as `ocr_text`.
    """

    def __init__(self, dpi: int = 144, jpeg_quality: int = 85, extract_text: bool = True):
        self.dpi = dpi
        self.jpeg_quality = jpeg_quality
        self.extract_text = extract_text

    def render(self, document_bytes: bytes) -> list[Page]:
        """
        Render every page of a PDF to JPEG.

        Args:
            document_bytes (bytes): Raw PDF bytes.

        Returns:
            list[Page]: One page per PDF page, numbered from 1.

        Raises:
            RasterizationError: If the document cannot be opened or rendered,
                or has no pages.
        """
        if not document_bytes:
            raise RasterizationError("document is empty")
        try:
            doc = pymupdf.open(stream=document_bytes, filetype="pdf")
        except (RuntimeError, ValueError) as exc:
            raise RasterizationError(f"failed to open PDF: {exc}") from exc

        pages: list[Page] = []
        try:
            if doc.page_count == 0:
                raise RasterizationError("document has no pages")
            for i in range(doc.page_count):
                pdf_page = doc.load_page(i)
                pix = pdf_page.get_pixmap(dpi=self.dpi)
                text = pdf_page.get_text("text") if self.extract_text else ""
                pages.append(
                    Page(
                        page_number=i + 1,
                        image_bytes=pix.tobytes("jpg", jpg_quality=self.jpeg_quality),
                        ocr_text=text.strip(),
                    )
                )
        except (RuntimeError, ValueError) as exc:
            raise RasterizationError(f"failed to render page {len(pages) + 1}: {exc}") from exc
        finally:
            doc.close()
        return pages
