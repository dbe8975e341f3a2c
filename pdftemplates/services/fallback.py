# pdftemplates/services/fallback.py
import io
import logging

from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

from utils.formatting import format_value, humanize_key

from .overlay import PdfProcessingError, load_template_bytes, render_overlay

logger = logging.getLogger(__name__)


def simple_pdf(title, data):
    """
    Plain "label: value" document used when the template PDF is unusable.
    Only non-empty scalar entries are listed.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, title=title,
        leftMargin=20 * mm, rightMargin=20 * mm, topMargin=20 * mm, bottomMargin=20 * mm,
        invariant=1,
    )
    styles = getSampleStyleSheet()
    elements = [Paragraph(escape(title), styles['Title']), Spacer(1, 6 * mm)]

    rows = []
    for key, value in (data or {}).items():
        if value is None or value == '' or isinstance(value, (list, dict, tuple)):
            continue
        rows.append([
            Paragraph(f"<b>{escape(humanize_key(key))}:</b>", styles['Normal']),
            Paragraph(escape(format_value(value)), styles['Normal']),
        ])
    if rows:
        table = Table(rows, colWidths=[60 * mm, None])
        table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LINEBELOW', (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ]))
        elements.append(table)
    else:
        elements.append(Paragraph('No data provided', styles['Normal']))

    elements.append(Spacer(1, 10 * mm))
    generated = timezone.localtime().strftime('%Y-%m-%d %H:%M:%S')
    elements.append(Paragraph(f"Generated on {generated}", styles['Italic']))

    doc.build(elements)
    return buffer.getvalue()


def render_with_fallback(template, values, record_index=None, title=None, fallback_data=None):
    """
    Render `template` filled with `values` (field name -> text).

    When the template PDF is missing or unreadable even after Ghostscript
    repair, a plain key/value document of `fallback_data` (default: the
    values) is returned instead. Returns (pdf_bytes, used_fallback).
    """
    path = template.pdf_abspath()
    try:
        if path is None:
            raise PdfProcessingError(f"Template {template.key} has no PDF file")
        data = load_template_bytes(path)
        pdf = render_overlay(
            data,
            template.fields,
            values,
            images_config=template.images,
            record_index=record_index,
            use_as_background=template.use_as_background,
        )
        return pdf, False
    except PdfProcessingError as e:
        logger.warning("Falling back to simple PDF for template %s: %s", template.key, e)
        data = values if fallback_data is None else fallback_data
        return simple_pdf(title or template.name or template.key, data), True
