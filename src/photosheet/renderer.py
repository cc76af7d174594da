"""Sheet compositing and PDF/PNG/JPG export."""

from __future__ import annotations

import io
import logging
from datetime import date
from pathlib import Path

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from photosheet.config import A4, OutputFormat, PageSpec, PhotoSettings
from photosheet.errors import OutOfRangeError
from photosheet.imaging import WHITE, frame_photo
from photosheet.models import LayoutPlan
from photosheet.placement import place
from photosheet.planner import mm_to_px

logger = logging.getLogger(__name__)

JPEG_QUALITY = 95
PREVIEW_JPEG_QUALITY = 85
MAX_BORDER_MM = 10.0


class RenderError(RuntimeError):
    """Raised when a sheet cannot be rendered or written."""


def _check_border(border_width_mm: float) -> None:
    if not 0 <= border_width_mm <= MAX_BORDER_MM:
        raise OutOfRangeError("border_width_mm", border_width_mm, low=0, high=MAX_BORDER_MM)


def _number_label(value: float) -> str:
    return f"{value:g}"


def sheet_filename(
    original_name: str,
    settings: PhotoSettings,
    border_width_mm: float,
    output_format: OutputFormat,
    on_date: date,
) -> str:
    """Descriptive download name, e.g. ``passport-photos_me_35x45mm_8photos_2025-01-31.pdf``."""

    stem = Path(original_name).stem
    border = f"_border-{_number_label(border_width_mm)}mm" if border_width_mm > 0 else ""
    return (
        f"passport-photos_{stem}_{_number_label(settings.width_mm)}x{_number_label(settings.height_mm)}mm"
        f"_{settings.quantity}photos{border}_{on_date.isoformat()}.{output_format.extension}"
    )


def cropped_filename(original_name: str, width_mm: float, height_mm: float, on_date: date) -> str:
    stem = Path(original_name).stem
    return f"cropped-passport-photo_{stem}_{_number_label(width_mm)}x{_number_label(height_mm)}mm_{on_date.isoformat()}.png"


def render_sheet(
    photo: Image.Image,
    plan: LayoutPlan,
    settings: PhotoSettings,
    border_width_mm: float = 0.0,
) -> Image.Image:
    """Composite every photo copy onto a white page at the plan's resolution."""

    _check_border(border_width_mm)
    border_px = mm_to_px(border_width_mm, plan.dpi)
    tile = frame_photo(photo, plan.photo_width_px, plan.photo_height_px, border_px)

    sheet = Image.new("RGB", (plan.page_width_px, plan.page_height_px), WHITE)
    placements = place(plan, settings)
    for placement in placements:
        sheet.paste(tile, (placement.x, placement.y))

    logger.info("Composited %d photo instances at %g DPI", len(placements), plan.dpi)
    return sheet


def export_raster(
    sheet: Image.Image,
    output: Path,
    output_format: OutputFormat,
    *,
    dpi: float,
    quality: int = JPEG_QUALITY,
) -> Path:
    """Write a rendered sheet as PNG or JPEG."""

    if output_format == OutputFormat.PDF:
        raise RenderError("Use export_pdf for PDF output")

    output.parent.mkdir(parents=True, exist_ok=True)
    try:
        if output_format == OutputFormat.PNG:
            sheet.save(output, format="PNG", dpi=(dpi, dpi))
        else:
            sheet.save(output, format="JPEG", quality=quality, dpi=(dpi, dpi))
    except OSError as exc:
        raise RenderError(f"Failed to write {output}: {exc}") from exc

    logger.info("Generated %s: %s", output_format.extension.upper(), output)
    return output


def _jpeg_reader(image: Image.Image) -> ImageReader:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=JPEG_QUALITY)
    buffer.seek(0)
    return ImageReader(buffer)


def export_pdf(
    photo: Image.Image,
    plan: LayoutPlan,
    settings: PhotoSettings,
    output: Path,
    *,
    border_width_mm: float = 0.0,
    page: PageSpec = A4,
) -> Path:
    """Write an A4 PDF with each copy placed in millimetres.

    The photo is embedded once as a JPEG at the plan's pixel size; a border,
    when set, is stroked around each copy with a line as wide as the border.
    """

    _check_border(border_width_mm)
    output.parent.mkdir(parents=True, exist_ok=True)

    tile = _jpeg_reader(frame_photo(photo, plan.photo_width_px, plan.photo_height_px))
    px_per_mm = plan.px_per_mm
    width_mm = plan.photo_width_px / px_per_mm
    height_mm = plan.photo_height_px / px_per_mm

    pdf = canvas.Canvas(str(output), pagesize=(page.width_mm * mm, page.height_mm * mm))
    for placement in place(plan, settings):
        x_mm = placement.x / px_per_mm
        # PDF origin is bottom-left.
        y_mm = page.height_mm - placement.y / px_per_mm - height_mm

        pdf.drawImage(tile, x_mm * mm, y_mm * mm, width=width_mm * mm, height=height_mm * mm)
        if border_width_mm > 0:
            pdf.setStrokeColorRGB(0, 0, 0)
            pdf.setLineWidth(border_width_mm * mm)
            pdf.rect(x_mm * mm, y_mm * mm, width_mm * mm, height_mm * mm, stroke=1, fill=0)

    try:
        pdf.save()
    except OSError as exc:
        raise RenderError(f"Failed to write {output}: {exc}") from exc

    logger.info("Generated PDF: %s", output)
    return output
