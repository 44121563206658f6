import io

import pdfplumber
from PIL import Image

from docflow.rendering.base import BaseRasterizer
from docflow.rendering.exceptions import RenderError


class PdfPlumberRasterizer(BaseRasterizer):
    """Renders the first PDF page using pdfplumber."""

    def _render_first_page(self, pdf_bytes: bytes) -> Image.Image:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                if not pdf.pages:
                    raise RenderError("PDF has no pages")
                page_image = pdf.pages[0].to_image(resolution=self._dpi)
                return page_image.original.copy()
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"pdfplumber rendering failed: {exc}") from exc
