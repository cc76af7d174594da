"""Photo grid planning: rows, columns and photo size that fit the printable area.

The planner converts every millimetre measure to whole pixels at the requested
DPI (rounding half up) and then picks an arrangement:

* 1-3 photos share a single row and are only shrunk when the row overflows.
* 4-8 photos share a single row that is always stretched or shrunk to span the
  available width. Height is not checked, so a row of tall, narrow photos can
  run past the bottom margin and report a utilization above 1.
* More than 8 photos fill as many columns as fit at full size, then as many
  rows as needed. Multi-row grids that still overflow are shrunk by the
  tighter of the two axis ratios, with a 2% safety margin.

``plan`` is a pure function: identical inputs always give identical plans.
"""

from __future__ import annotations

import logging
import math

from photosheet.config import A4, MM_PER_INCH, PRINT_DPI, PageSpec, PhotoSettings
from photosheet.errors import InconsistentSettingsError, OutOfRangeError
from photosheet.models import LayoutPlan

logger = logging.getLogger(__name__)

SINGLE_ROW_FIT_MAX = 3
SINGLE_ROW_STRETCH_MAX = 8
MULTI_ROW_SAFETY = 0.98
MIN_DPI = 1.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""

    return math.floor(value + 0.5)


def mm_to_px(value_mm: float, dpi: float) -> int:
    return round_half_up(value_mm * (dpi / MM_PER_INCH))


def _row_width(count: int, photo_width: int, spacing: int) -> int:
    return count * photo_width + (count - 1) * spacing


def plan(settings: PhotoSettings, page: PageSpec = A4, dpi: float = PRINT_DPI) -> LayoutPlan:
    """Compute the layout plan for ``settings`` on ``page`` at ``dpi``."""

    if dpi < MIN_DPI:
        raise OutOfRangeError("dpi", dpi, low=MIN_DPI)

    page_width = mm_to_px(page.width_mm, dpi)
    page_height = mm_to_px(page.height_mm, dpi)
    side_margin = mm_to_px(page.side_margin_mm, dpi)
    top_margin = mm_to_px(settings.top_margin_mm, dpi)
    bottom_margin = mm_to_px(page.bottom_margin_mm, dpi)

    available_width = page_width - 2 * side_margin
    available_height = page_height - top_margin - bottom_margin
    if available_width <= 0:
        raise InconsistentSettingsError("side_margin_mm", "no printable width left on the page")
    if available_height <= 0:
        raise InconsistentSettingsError("top_margin_mm", "no printable height left on the page")

    photo_width = mm_to_px(settings.width_mm, dpi)
    photo_height = mm_to_px(settings.height_mm, dpi)
    spacing = mm_to_px(settings.spacing_mm, dpi)
    if photo_width < 1 or photo_height < 1:
        raise InconsistentSettingsError("dpi", "photos shrink below one pixel at this resolution")

    quantity = settings.quantity
    scale = 1.0

    if quantity <= SINGLE_ROW_STRETCH_MAX:
        photos_per_row = quantity
        total_rows = 1
        row_width = _row_width(quantity, photo_width, spacing)
        row_scale = available_width / row_width

        if quantity <= SINGLE_ROW_FIT_MAX and row_width <= available_width:
            row_scale = 1.0

        if row_scale != 1.0:
            photo_width = round_half_up(photo_width * row_scale)
            photo_height = round_half_up(photo_height * row_scale)
            scale *= row_scale
        logger.debug("Single row of %d photo(s), scale %.3f", quantity, row_scale)
    else:
        max_per_row = (available_width + spacing) // (photo_width + spacing)
        if max_per_row < 1:
            raise InconsistentSettingsError("width_mm", "a single photo is wider than the printable area")
        photos_per_row = min(max_per_row, quantity)
        total_rows = math.ceil(quantity / photos_per_row)
        logger.debug("Grid of %d x %d for %d photos", photos_per_row, total_rows, quantity)

    grid_width = _row_width(photos_per_row, photo_width, spacing)
    grid_height = _row_width(total_rows, photo_height, spacing)
    if total_rows > 1 and (grid_width > available_width or grid_height > available_height):
        fit_scale = min(available_width / grid_width, available_height / grid_height) * MULTI_ROW_SAFETY
        photo_width = round_half_up(photo_width * fit_scale)
        photo_height = round_half_up(photo_height * fit_scale)
        scale *= fit_scale
        logger.debug("Grid overflowed the printable area, scale %.3f", fit_scale)

    if photo_width < 1 or photo_height < 1:
        raise InconsistentSettingsError("dpi", "photos shrink below one pixel at this resolution")

    page_utilization = (quantity * photo_width * photo_height) / (available_width * available_height)

    return LayoutPlan(
        dpi=dpi,
        photos_per_row=photos_per_row,
        total_rows=total_rows,
        photo_width_px=photo_width,
        photo_height_px=photo_height,
        page_utilization=page_utilization,
        scale=scale,
        page_width_px=page_width,
        page_height_px=page_height,
        side_margin_px=side_margin,
        top_margin_px=top_margin,
        bottom_margin_px=bottom_margin,
        spacing_px=spacing,
        available_width_px=available_width,
        available_height_px=available_height,
    )
