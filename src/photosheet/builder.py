"""Main build orchestration for photosheet."""

from __future__ import annotations

import logging
import mimetypes
from datetime import date
from pathlib import Path

from PIL import Image

from photosheet.background import BackgroundRemovalResult, remove_background
from photosheet.config import (
    A4,
    PREVIEW_DPI,
    PRINT_DPI,
    CropSettings,
    OutputFormat,
    PhotoSettings,
)
from photosheet.imaging import ImageLoadError, apply_crop, frame_photo, load_image, open_image
from photosheet.models import BuildReport
from photosheet.planner import mm_to_px, plan
from photosheet.renderer import (
    PREVIEW_JPEG_QUALITY,
    cropped_filename,
    export_pdf,
    export_raster,
    render_sheet,
    sheet_filename,
)
from photosheet.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


def _resolve_output(output: Path, default_name: str) -> Path:
    if output.is_dir() or not output.suffix:
        return output / default_name
    return output


def _remove_background(
    source: Path,
    background_color: str,
    app_settings: AppSettings | None,
) -> BackgroundRemovalResult:
    if not source.is_file():
        raise ImageLoadError(f"Image file not found: {source}")

    app_settings = app_settings or get_settings()
    mime_type = mimetypes.guess_type(source.name)[0] or "application/octet-stream"
    return remove_background(
        source.read_bytes(),
        source.name,
        mime_type,
        app_settings.removebg_api_keys,
        background_color=background_color,
        api_url=app_settings.removebg_api_url,
        timeout_seconds=app_settings.removebg_timeout_seconds,
    )


def _prepare_source(
    source: Path,
    *,
    crop: CropSettings | None,
    remove_bg: bool,
    background_color: str,
    app_settings: AppSettings | None,
) -> tuple[Image.Image, int | None]:
    api_key_used = None
    if remove_bg:
        result = _remove_background(source, background_color, app_settings)
        image = open_image(result.content)
        api_key_used = result.api_key_index
    else:
        image = load_image(source)

    if crop is not None and not crop.is_identity:
        image = apply_crop(image, crop)
    return image, api_key_used


def build_sheet(
    source: Path,
    output: Path,
    settings: PhotoSettings,
    *,
    output_format: OutputFormat = OutputFormat.PDF,
    border_width_mm: float = 0.0,
    crop: CropSettings | None = None,
    remove_bg: bool = False,
    background_color: str = "#ffffff",
    app_settings: AppSettings | None = None,
    dpi: float = PRINT_DPI,
    on_date: date | None = None,
) -> BuildReport:
    """Render an A4 sheet of ``settings.quantity`` photos cut from ``source``.

    ``output`` may be a directory (a descriptive filename is generated) or a file path.
    """

    photo, api_key_used = _prepare_source(
        source,
        crop=crop,
        remove_bg=remove_bg,
        background_color=background_color,
        app_settings=app_settings,
    )

    layout = plan(settings, A4, dpi)
    logger.info(
        "Layout: %d photo(s) per row, %d row(s), %dx%dpx, utilization %.1f%%",
        layout.photos_per_row,
        layout.total_rows,
        layout.photo_width_px,
        layout.photo_height_px,
        layout.page_utilization * 100,
    )

    filename = sheet_filename(source.name, settings, border_width_mm, output_format, on_date or date.today())
    target = _resolve_output(output, filename)

    if output_format == OutputFormat.PDF:
        export_pdf(photo, layout, settings, target, border_width_mm=border_width_mm)
    else:
        sheet = render_sheet(photo, layout, settings, border_width_mm)
        export_raster(sheet, target, output_format, dpi=dpi)

    return BuildReport(
        output=target,
        output_format=output_format,
        settings=settings,
        plan=layout,
        border_width_mm=border_width_mm,
        background_removed=remove_bg,
        api_key_used=api_key_used,
    )


def build_preview(
    source: Path,
    output: Path,
    settings: PhotoSettings,
    *,
    border_width_mm: float = 0.0,
    crop: CropSettings | None = None,
) -> BuildReport:
    """Render a low-resolution JPEG preview of the sheet."""

    photo, _ = _prepare_source(source, crop=crop, remove_bg=False, background_color="#ffffff", app_settings=None)
    layout = plan(settings, A4, PREVIEW_DPI)

    target = _resolve_output(output, f"preview_{source.stem}.jpg")
    sheet = render_sheet(photo, layout, settings, border_width_mm)
    export_raster(sheet, target, OutputFormat.JPG, dpi=PREVIEW_DPI, quality=PREVIEW_JPEG_QUALITY)

    return BuildReport(
        output=target,
        output_format=OutputFormat.JPG,
        settings=settings,
        plan=layout,
        border_width_mm=border_width_mm,
    )


def export_cropped_photo(
    source: Path,
    output: Path,
    crop: CropSettings,
    width_mm: float,
    height_mm: float,
    *,
    on_date: date | None = None,
) -> Path:
    """Write a single cropped photo at print resolution as PNG."""

    image = apply_crop(load_image(source), crop)
    photo = frame_photo(image, mm_to_px(width_mm, PRINT_DPI), mm_to_px(height_mm, PRINT_DPI))

    target = _resolve_output(output, cropped_filename(source.name, width_mm, height_mm, on_date or date.today()))
    export_raster(photo, target, OutputFormat.PNG, dpi=PRINT_DPI)
    logger.info("Generated cropped passport photo: %s", target)
    return target


def remove_background_to_file(
    source: Path,
    output: Path,
    *,
    background_color: str = "#ffffff",
    app_settings: AppSettings | None = None,
) -> tuple[Path, int]:
    """Write the background-removed PNG and return (path, 1-based key index)."""

    result = _remove_background(source, background_color, app_settings)

    target = _resolve_output(output, f"bg_removed_{source.stem}.png")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(result.content)
    return target, result.api_key_index
