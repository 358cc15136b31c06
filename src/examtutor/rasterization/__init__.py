from .pdf import PdfRasterizer

__all__ = ["PdfRasterizer"]
