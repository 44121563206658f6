import io
from abc import ABC, abstractmethod

from PIL import Image, UnidentifiedImageError

from docflow.rendering.exceptions import RenderError, UnsupportedMimeTypeError

PDF_MIME_TYPE = "application/pdf"


class BaseRasterizer(ABC):
    """Contract for all adapters that turn a stored document into one PNG image."""

    def __init__(self, *, max_width: int = 1600, dpi: int = 150) -> None:
        self._max_width = max_width
        self._dpi = dpi

    def render(self, data: bytes, mime_type: str) -> bytes:
        """Render a document to PNG bytes.

        PDFs are rendered from their first page; images are re-encoded. Either
        way the result is downscaled proportionally to ``max_width``.

        Raises:
            UnsupportedMimeTypeError: for anything other than PDF or image/*.
            RenderError: if the bytes cannot be decoded.
        """
        mime = mime_type.lower().strip()
        if mime == PDF_MIME_TYPE:
            image = self._render_first_page(data)
        elif mime.startswith("image/"):
            image = self._open_image(data)
        else:
            raise UnsupportedMimeTypeError(
                f"Unsupported MIME type for image conversion: {mime_type}"
            )
        return self._to_png(self._downscale(image))

    @abstractmethod
    def _render_first_page(self, pdf_bytes: bytes) -> Image.Image:
        """Rasterize page one of a PDF.

        Raises:
            RenderError: if the PDF cannot be opened or has no pages.
        """

    @staticmethod
    def _open_image(data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise RenderError(f"Failed to decode image bytes: {exc}") from exc
        return image

    def _downscale(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        if width <= self._max_width:
            return image
        new_height = max(1, round(height * self._max_width / width))
        return image.resize((self._max_width, new_height), Image.Resampling.LANCZOS)

    @staticmethod
    def _to_png(image: Image.Image) -> bytes:
        if image.mode not in ("RGB", "RGBA", "L", "LA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        return buf.getvalue()
