import io

import pymupdf
from PIL import Image

from docflow.rendering.base import BaseRasterizer
from docflow.rendering.exceptions import RenderError


class PyMuPdfRasterizer(BaseRasterizer):
    """Renders the first PDF page using PyMuPDF."""

    def _render_first_page(self, pdf_bytes: bytes) -> Image.Image:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                if doc.page_count == 0:
                    raise RenderError("PDF has no pages")
                pixmap = doc[0].get_pixmap(dpi=self._dpi)
                png = pixmap.tobytes("png")
            return Image.open(io.BytesIO(png))
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"pymupdf rendering failed: {exc}") from exc
