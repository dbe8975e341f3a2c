import io

import pytest
from reportlab.pdfgen import canvas


def build_pdf(pages=((595.28, 841.89),), labels=None):
    """Small PDF with one page per (width, height) in points, each labelled "Page <n>"."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, invariant=1)
    for number, size in enumerate(pages, start=1):
        pdf.setPageSize(size)
        pdf.setFont('Helvetica', 10)
        label = labels[number - 1] if labels else f"Page {number}"
        pdf.drawString(20, 20, label)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / 'media'
    settings.MEDIA_ROOT.mkdir()
    # no Ghostscript in tests; unreadable PDFs go straight to the fallback path
    settings.GHOSTSCRIPT_COMMANDS = []
    return settings.MEDIA_ROOT


@pytest.fixture
def pdf_factory():
    return build_pdf


@pytest.fixture
def stored_pdf(media_root):
    """Write a PDF under MEDIA_ROOT and return its relative path."""
    def _store(relative_path='templates/sample.pdf', data=None, **kwargs):
        target = media_root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data if data is not None else build_pdf(**kwargs))
        return relative_path
    return _store
