import io

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page invoice-like PDF."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "INVOICE INV-2024-001")
    c.drawString(72, 700, "Acme Corp")
    c.drawString(72, 680, "Total: 110.00 USD")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_png_bytes() -> bytes:
    """Generate a small PNG that needs no downscaling."""
    buf = io.BytesIO()
    Image.new("RGB", (200, 100), color="white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def wide_jpeg_bytes() -> bytes:
    """Generate a JPEG wider than the default maximum render width."""
    buf = io.BytesIO()
    Image.new("RGB", (3200, 800), color="gray").save(buf, format="JPEG")
    return buf.getvalue()
