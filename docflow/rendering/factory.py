from docflow.config.settings import Settings
from docflow.rendering.base import BaseRasterizer
from docflow.rendering.pdfplumber_adapter import PdfPlumberRasterizer
from docflow.rendering.pymupdf_adapter import PyMuPdfRasterizer


class RasterizerFactory:
    """Creates the correct rasterizer based on settings."""

    ADAPTERS: dict[str, type[BaseRasterizer]] = {
        "pymupdf": PyMuPdfRasterizer,
        "pdfplumber": PdfPlumberRasterizer,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseRasterizer:
        engine = settings.render_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown render engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls(
            max_width=settings.ollama_max_image_width,
            dpi=settings.render_dpi,
        )
