# pdftemplates/services/units.py
"""
Unit conversion between the editor canvas, millimetres and PDF points.

Field positions are stored in millimetres with a top-left origin, which is
what the editor records. reportlab draws in points with a bottom-left
origin, so every placement goes through mm_to_points and a y-flip.
"""

MM_PER_POINT = 25.4 / 72
POINTS_PER_MM = 72 / 25.4

# Widths drawn in the browser are CSS pixels at 96 DPI.
PX_PER_MM = 3.78

# Baseline sits this many mm below the click point per point of font size.
BASELINE_OFFSET_RATIO = 0.25
# Wrapped line height in mm per point of font size.
LINE_HEIGHT_RATIO = 0.4


def points_to_mm(value):
    return float(value) * MM_PER_POINT


def mm_to_points(value):
    return float(value) * POINTS_PER_MM


def px_to_mm(value):
    """CSS pixels (96 DPI) to millimetres."""
    return float(value) / PX_PER_MM


def canvas_to_mm(px, canvas_extent_px, page_extent_mm):
    """
    Map a click offset inside the rendered page canvas to millimetres.

    canvas_extent_px is the rendered width (or height) of the page canvas and
    page_extent_mm the real page width (or height). Result is rounded to
    0.1 mm, the precision the editor stores.
    """
    if not canvas_extent_px:
        raise ValueError("canvas extent must be non-zero")
    return round(float(px) * (float(page_extent_mm) / float(canvas_extent_px)), 1)


def editor_px_to_mm(px, scale=1.5):
    """
    Convert a pdf.js canvas coordinate rendered at `scale` to millimetres.
    pdf.js renders one PDF point as `scale` pixels.
    """
    scale = float(scale or 1.5)
    return round(float(px) / (scale * POINTS_PER_MM), 2)


def clamp(value, lower, upper):
    return max(lower, min(float(value), upper))


def orientation_for(width, height):
    return 'P' if float(height) >= float(width) else 'L'
