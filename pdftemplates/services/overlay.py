# pdftemplates/services/overlay.py
"""
Overlay renderer: draws field values and images on top of the pages of a
template PDF.

Each source page is read with PyPDF2, a page of the same visible size is drawn with
reportlab and merged on top of it. When the template is not used as a
background the overlay is merged onto a blank page of the same size instead,
so only the data prints.
"""
import base64
import binascii
import io
import logging
import os
import re

from PyPDF2 import PageObject, PdfReader, PdfWriter, Transformation
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from . import units
from .repair import recompress_pdf

logger = logging.getLogger(__name__)

FONT_NAME = 'Helvetica'
LABEL_FONT_NAME = 'Helvetica-Bold'
DEFAULT_FONT_SIZE = 12.0
ALIGNMENTS = ('left', 'center', 'right')

_SUFFIX_RE = re.compile(r'_\d+$')
_DATA_URI_RE = re.compile(r'^data:[^;,]*(;base64)?,')


class PdfProcessingError(Exception):
    """The template PDF could not be read, even after recompression."""


# ---------------------------
# Reading the template
# ---------------------------

def _parse(data):
    reader = PdfReader(io.BytesIO(data))
    if reader.is_encrypted:
        reader.decrypt('')
    # touch every page so broken xref tables fail here and not mid-render
    for page in reader.pages:
        page.mediabox
    return reader


def load_template_bytes(path):
    """
    Return the bytes of a PDF PyPDF2 can parse.

    When the file cannot be parsed it is recompressed with Ghostscript and
    parsed again. Raises PdfProcessingError when both attempts fail.
    """
    path = str(path)
    if not os.path.isfile(path):
        raise PdfProcessingError(f"PDF file not found: {path}")

    with open(path, 'rb') as fh:
        data = fh.read()
    try:
        _parse(data)
        return data
    except Exception as e:
        logger.warning("PyPDF2 could not read %s (%s); trying Ghostscript", path, e)

    repaired = recompress_pdf(path)
    if not repaired:
        raise PdfProcessingError(f"Unreadable PDF and no Ghostscript repair available: {os.path.basename(path)}")
    try:
        with open(repaired, 'rb') as fh:
            data = fh.read()
        _parse(data)
        return data
    except Exception as e:
        raise PdfProcessingError(f"PDF still unreadable after Ghostscript repair: {e}") from e
    finally:
        os.remove(repaired)


def open_template(data):
    try:
        return _parse(data)
    except Exception as e:
        raise PdfProcessingError(f"Error loading PDF template: {e}") from e


def _rotation(page):
    angle = page.get('/Rotate') or 0
    if hasattr(angle, 'get_object'):
        angle = angle.get_object()
    try:
        angle = int(angle) % 360
    except (TypeError, ValueError):
        return 0
    return angle if angle in (0, 90, 180, 270) else 0


def _page_box(page):
    """
    Visible size of a page as (width, height, ctm), in points.

    The size is the crop box as displayed, with /Rotate applied. `ctm` maps
    the bottom-left origin of that displayed page onto the page's own user
    space, so an overlay drawn upright lands upright on a rotated page.
    """
    box = page.cropbox
    left, bottom = float(box.left), float(box.bottom)
    width, height = float(box.width), float(box.height)
    rotation = _rotation(page)
    if rotation == 90:
        return height, width, (0, 1, -1, 0, left + width, bottom)
    if rotation == 180:
        return width, height, (-1, 0, 0, -1, left + width, bottom + height)
    if rotation == 270:
        return height, width, (0, -1, 1, 0, left, bottom + height)
    return width, height, (1, 0, 0, 1, left, bottom)


def page_dimensions(data):
    """Per-page size in millimetres as displayed, keyed by 1-based page number."""
    reader = open_template(data)
    dimensions = {}
    for number, page in enumerate(reader.pages, start=1):
        width_pt, height_pt, _ = _page_box(page)
        width, height = units.points_to_mm(width_pt), units.points_to_mm(height_pt)
        dimensions[number] = {
            'width': round(width, 2),
            'height': round(height, 2),
            'orientation': units.orientation_for(width, height),
        }
    return dimensions


# ---------------------------
# Values
# ---------------------------

def _positional(row, index):
    try:
        index = int(index)
    except (TypeError, ValueError):
        return None
    if 0 <= index < len(row):
        return row[index]
    return None


def resolve_value(field_name, config, record, row=None):
    """
    Look up the value of one field in a flat record.

    `csv_index` in the field config selects a spreadsheet column, a purely
    numeric field name is a 1-based column position, otherwise the field name
    is matched against the record keys, first as-is and then without a
    trailing `_<n>` (repeated fields such as `total_1`, `total_2`).
    Missing values resolve to ''.
    """
    record = record or {}
    if row is None:
        row = list(record.values())
    config = config or {}

    if config.get('csv_index') not in (None, ''):
        value = _positional(row, config['csv_index'])
    elif str(field_name).isdigit():
        value = _positional(row, int(field_name) - 1)
    else:
        value = record.get(field_name)
        if value in (None, ''):
            value = record.get(_SUFFIX_RE.sub('', str(field_name)))

    if value is None:
        return ''
    return str(value)


# ---------------------------
# Layout
# ---------------------------

def field_width_mm(config):
    try:
        width = float(config.get('width') or 0)
    except (TypeError, ValueError):
        width = 0.0
    if width > 0:
        return width
    try:
        width_px = float(config.get('width_px') or 0)
    except (TypeError, ValueError):
        width_px = 0.0
    return units.px_to_mm(width_px) if width_px > 0 else 0.0


def _font_size(config):
    try:
        size = float(config.get('size') or DEFAULT_FONT_SIZE)
    except (TypeError, ValueError):
        size = DEFAULT_FONT_SIZE
    return size if size > 0 else DEFAULT_FONT_SIZE


def _align(config):
    align = str(config.get('align') or 'left').lower()
    return align if align in ALIGNMENTS else 'left'


def _text_width_mm(text, size):
    return units.points_to_mm(stringWidth(text, FONT_NAME, size))


def _fit_to_width(text, size, width_mm):
    while text and _text_width_mm(text, size) > width_mm:
        text = text[:-1]
    return text


def layout_field(config, value, page_width_mm, page_height_mm):
    """
    Work out where a value is drawn. Pure and deterministic.

    Returns a dict with the anchor (clamped into the page), the box start,
    and one entry per drawn line with its start X and baseline Y in both
    millimetres (top-left origin) and points (bottom-left origin).
    """
    text = '' if value is None else str(value)
    size = _font_size(config)
    align = _align(config)
    width = field_width_mm(config)
    wrap = bool(config.get('wrap_text') or config.get('wrap')) and width > 0

    x = units.clamp(config.get('x') or 0, 0, page_width_mm)
    y = units.clamp(config.get('y') or 0, 0, page_height_mm)

    if width > 0:
        start_x = x
        if align == 'center':
            start_x = x - width / 2
        elif align == 'right':
            start_x = x - width
        start_x = max(0.0, start_x)
        if wrap:
            lines = simpleSplit(text, FONT_NAME, size, units.mm_to_points(width)) or ['']
        else:
            lines = [_fit_to_width(text.replace('\n', ' '), size, width)]
    else:
        start_x = x
        lines = [text.replace('\n', ' ')]

    baseline = y + size * units.BASELINE_OFFSET_RATIO
    line_height = size * units.LINE_HEIGHT_RATIO

    placed = []
    for number, line in enumerate(lines):
        line_y = baseline + number * line_height
        if number and line_y > page_height_mm:
            break
        line_width = _text_width_mm(line, size)
        if width > 0:
            if align == 'center':
                line_x = start_x + (width - line_width) / 2
            elif align == 'right':
                line_x = start_x + width - line_width
            else:
                line_x = start_x
        else:
            if align == 'center':
                line_x = x - line_width / 2
            elif align == 'right':
                line_x = x - line_width
            else:
                line_x = x
        line_x = max(0.0, line_x)
        placed.append({
            'text': line,
            'x_mm': round(line_x, 4),
            'y_mm': round(line_y, 4),
            'x_pt': round(units.mm_to_points(line_x), 4),
            'y_pt': round(units.mm_to_points(page_height_mm - line_y), 4),
        })

    return {
        'x_mm': round(x, 4),
        'y_mm': round(y, 4),
        'start_x_mm': round(start_x, 4),
        'width_mm': round(width, 4),
        'font_size': size,
        'align': align,
        'wrap': wrap,
        'lines': placed,
    }


def _field_page(config):
    try:
        return int(config.get('page') or 1)
    except (TypeError, ValueError):
        return 1


def plan_page(fields_config, values, page_number, page_width_mm, page_height_mm):
    """Layouts of every non-empty field configured for `page_number`."""
    plans = []
    for name, config in (fields_config or {}).items():
        if not isinstance(config, dict) or _field_page(config) != page_number:
            continue
        value = values.get(name)
        if value is None or value == '':
            continue
        plans.append((name, layout_field(config, value, page_width_mm, page_height_mm)))
    return plans


# ---------------------------
# Images
# ---------------------------

def decode_image(payload):
    """Decode a base64 image payload (a data: URI prefix is allowed)."""
    if not payload:
        return None
    payload = _DATA_URI_RE.sub('', str(payload).strip())
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        return None


def image_applies(config, record_index):
    """Whether an image is printed for the 1-based record_index (None = preview)."""
    if record_index is None:
        return True
    low, high = config.get('record_from'), config.get('record_to')
    try:
        if low not in (None, '') and record_index < int(low):
            return False
        if high not in (None, '') and record_index > int(high):
            return False
    except (TypeError, ValueError):
        return True
    return True


def _draw_image(pdf, config, page_height_pt):
    data = decode_image(config.get('data'))
    if not data:
        logger.warning("Skipping image overlay with an empty or invalid payload")
        return
    try:
        image = ImageReader(io.BytesIO(data))
        px_w, px_h = image.getSize()
    except Exception as e:
        logger.warning("Skipping unreadable image overlay: %s", e)
        return

    width = float(config.get('width') or 0) or units.px_to_mm(px_w)
    height = float(config.get('height') or 0) or units.px_to_mm(px_h)
    x = max(0.0, float(config.get('x') or 0))
    y = max(0.0, float(config.get('y') or 0))
    pdf.drawImage(
        image,
        units.mm_to_points(x),
        page_height_pt - units.mm_to_points(y + height),
        width=units.mm_to_points(width),
        height=units.mm_to_points(height),
        mask='auto',
    )


# ---------------------------
# Rendering
# ---------------------------

def _draw_plans(pdf, plans):
    pdf.setFillColorRGB(0, 0, 0)
    for _name, plan in plans:
        pdf.setFont(FONT_NAME, plan['font_size'])
        for line in plan['lines']:
            pdf.drawString(line['x_pt'], line['y_pt'], line['text'])


def _merge(writer, page, overlay_page, use_as_background):
    if use_as_background:
        target = page
    else:
        # blank sheet with the page's crop size and rotation
        box = page.cropbox
        target = PageObject.create_blank_page(width=float(box.width), height=float(box.height))
        rotation = _rotation(page)
        if rotation:
            target.rotate(rotation)
    _, _, ctm = _page_box(target)
    if ctm == (1, 0, 0, 1, 0.0, 0.0):
        target.merge_page(overlay_page)
    else:
        target.merge_transformed_page(overlay_page, Transformation(ctm=ctm))
    writer.add_page(target)


def _compose(reader, draw_page, use_as_background=True):
    """
    Draw one overlay page per source page with draw_page(pdf, number, w_mm, h_mm)
    and merge the overlays onto the source. Returns PDF bytes.
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, invariant=1)
    for number, page in enumerate(reader.pages, start=1):
        width_pt, height_pt, _ = _page_box(page)
        pdf.setPageSize((width_pt, height_pt))
        draw_page(pdf, number, units.points_to_mm(width_pt), units.points_to_mm(height_pt))
        pdf.showPage()
    pdf.save()

    overlay = PdfReader(io.BytesIO(buffer.getvalue()))
    writer = PdfWriter()
    for page, overlay_page in zip(reader.pages, overlay.pages):
        _merge(writer, page, overlay_page, use_as_background)

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def render_overlay(template_data, fields_config, values, images_config=None,
                   record_index=None, use_as_background=True):
    """
    Render a filled PDF.

    `values` maps field name -> text; empty values are not drawn. Fields are
    drawn only on their configured page, fields pointing at a page the
    template does not have are skipped with a warning. Images are drawn when
    they apply to `record_index`.
    """
    reader = open_template(template_data)
    page_count = len(reader.pages)
    fields_config = fields_config or {}

    for name, config in fields_config.items():
        if isinstance(config, dict) and _field_page(config) > page_count:
            logger.warning("Field %s is on page %s but the template has %s page(s)",
                           name, _field_page(config), page_count)

    images = [img for img in (images_config or []) if isinstance(img, dict) and image_applies(img, record_index)]

    def draw_page(pdf, number, width_mm, height_mm):
        height_pt = units.mm_to_points(height_mm)
        for image in images:
            if _field_page(image) == number:
                _draw_image(pdf, image, height_pt)
        _draw_plans(pdf, plan_page(fields_config, values, number, width_mm, height_mm))

    return _compose(reader, draw_page, use_as_background)


def render_record(template, template_data, record, row=None, record_index=None):
    """Render `template` filled from a flat record."""
    fields_config = template.fields
    values = {name: resolve_value(name, config, record, row) for name, config in fields_config.items()}
    return render_overlay(
        template_data,
        fields_config,
        values,
        images_config=template.images,
        record_index=record_index,
        use_as_background=template.use_as_background,
    )


def preview_values(fields_config, supplied):
    """Supplied values, with `[field]` placeholders for the missing ones."""
    values = {}
    for name in (fields_config or {}):
        value = supplied.get(name)
        values[name] = str(value) if value not in (None, '') else f"[{name}]"
    return values


def render_coordinate_test(template_data, x_mm, y_mm, page_number=1):
    """Template pages with a red crosshair and label at (x_mm, y_mm) on one page."""
    reader = open_template(template_data)

    def draw_page(pdf, number, width_mm, height_mm):
        if number != page_number:
            return
        height_pt = units.mm_to_points(height_mm)

        def pt(x, y):
            return units.mm_to_points(x), height_pt - units.mm_to_points(y)

        pdf.setStrokeColorRGB(1, 0, 0)
        pdf.setFillColorRGB(1, 0, 0)
        pdf.setLineWidth(units.mm_to_points(0.5))
        pdf.line(*pt(x_mm - 5, y_mm), *pt(x_mm + 5, y_mm))
        pdf.line(*pt(x_mm, y_mm - 5), *pt(x_mm, y_mm + 5))
        left, bottom = pt(x_mm - 0.5, y_mm + 0.5)
        pdf.rect(left, bottom, units.mm_to_points(1), units.mm_to_points(1), stroke=0, fill=1)
        pdf.setFont(LABEL_FONT_NAME, 8)
        pdf.drawString(*pt(x_mm + 6, y_mm + 1), f"X:{x_mm:g}mm Y:{y_mm:g}mm")

    return _compose(reader, draw_page)
