"""Unit and geometry conversion between the archive and the editor canvas.

Import and export deliberately convert through different paths:

- Import is source-page-size aware.  Native EMU values are scaled by
  ``canvas_width_px / document_width_emu`` where the document width comes
  from ``ppt/presentation.xml`` (fallback: a 10-inch page).
- Export is output-page-size fixed.  Canvas pixels are first normalised to a
  fraction of the canvas, then multiplied by the fixed output page size in
  inches.  The original import page size plays no part.
"""

import math

EMU_PER_INCH = 914400
EMU_PER_PT = 12700

DEFAULT_DOCUMENT_WIDTH_EMU = 9_144_000  # 10 inches


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def scale_factor(canvas_width_px: float,
                 document_width_emu: int | None,
                 fallback_width_emu: int = DEFAULT_DOCUMENT_WIDTH_EMU) -> float:
    """Pixels-per-EMU for a given document width.

    A missing or non-positive document width is replaced by
    ``fallback_width_emu`` so conversion never fails.
    """
    if not document_width_emu or document_width_emu <= 0:
        document_width_emu = fallback_width_emu
    return canvas_width_px / document_width_emu


def pixels_from_native(value: int | float, factor: float) -> int:
    """Convert a native (EMU) length to canvas pixels.

    >>> pixels_from_native(914400, scale_factor(960, 9144000))
    96
    """
    return _round_half_up(value * factor)


def font_px_from_hundredths(size: int | float) -> int:
    """Run font size (hundredths of a point) to editor pixels."""
    return _round_half_up(size / 100)


def canvas_fraction(value: float, canvas_dimension: float) -> float:
    """Express a canvas length as a fraction of the canvas dimension."""
    if canvas_dimension <= 0:
        raise ValueError(f"canvas dimension must be positive, got {canvas_dimension}")
    return value / canvas_dimension


def fraction_to_inches(fraction: float, page_dimension_in: float) -> float:
    return fraction * page_dimension_in


def place_on_page(x: float, y: float, width: float, height: float,
                  canvas_width_px: float, canvas_height_px: float,
                  page_width_in: float, page_height_in: float,
                  ) -> tuple[float, float, float, float]:
    """Map a canvas bounding box to (left, top, width, height) in inches."""
    return (
        fraction_to_inches(canvas_fraction(x, canvas_width_px), page_width_in),
        fraction_to_inches(canvas_fraction(y, canvas_height_px), page_height_in),
        fraction_to_inches(canvas_fraction(width, canvas_width_px), page_width_in),
        fraction_to_inches(canvas_fraction(height, canvas_height_px), page_height_in),
    )


def inches_to_emu(inches: float) -> int:
    return _round_half_up(inches * EMU_PER_INCH)


def contain_fit(image_width: float, image_height: float,
                box_left: float, box_top: float,
                box_width: float, box_height: float,
                ) -> tuple[float, float, float, float]:
    """Scale an image to fit inside a box, preserving aspect ratio, centred.

    Returns (left, top, width, height) in the box's unit.  A degenerate image
    size fills the box.
    """
    if image_width <= 0 or image_height <= 0:
        return box_left, box_top, box_width, box_height
    scale = min(box_width / image_width, box_height / image_height)
    width = image_width * scale
    height = image_height * scale
    left = box_left + (box_width - width) / 2
    top = box_top + (box_height - height) / 2
    return left, top, width, height
