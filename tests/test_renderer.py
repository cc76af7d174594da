from datetime import date
from pathlib import Path

import pytest
from PIL import Image

from photosheet.config import PREVIEW_DPI, LayoutAnchor, OutputFormat, PhotoSettings
from photosheet.errors import OutOfRangeError
from photosheet.placement import place
from photosheet.planner import plan
from photosheet.renderer import (
    RenderError,
    cropped_filename,
    export_pdf,
    export_raster,
    render_sheet,
    sheet_filename,
)


def _red_photo() -> Image.Image:
    return Image.new("RGB", (300, 400), (255, 0, 0))


def _is_red(pixel: tuple[int, int, int]) -> bool:
    red, green, blue = pixel
    return red > 240 and green < 15 and blue < 15


def test_render_sheet_places_every_copy_on_white_page() -> None:
    settings = PhotoSettings(quantity=3, layout=LayoutAnchor.TOP_LEFT)
    layout = plan(settings, dpi=PREVIEW_DPI)

    sheet = render_sheet(_red_photo(), layout, settings)

    assert sheet.size == (layout.page_width_px, layout.page_height_px)
    assert sheet.getpixel((5, 5)) == (255, 255, 255)
    for item in place(layout, settings):
        assert _is_red(sheet.getpixel((item.x + item.width // 2, item.y + item.height // 2)))
    gap_x = place(layout, settings)[0].x + layout.photo_width_px + layout.spacing_px // 2
    assert sheet.getpixel((gap_x, place(layout, settings)[0].y + 10)) == (255, 255, 255)


def test_render_sheet_with_border() -> None:
    settings = PhotoSettings(quantity=1, layout=LayoutAnchor.TOP_LEFT)
    layout = plan(settings, dpi=PREVIEW_DPI)

    sheet = render_sheet(_red_photo(), layout, settings, border_width_mm=1)
    first = place(layout, settings)[0]

    assert sheet.getpixel((first.x + 1, first.y + 1)) == (0, 0, 0)
    assert _is_red(sheet.getpixel((first.x + 20, first.y + 20)))


def test_render_sheet_rejects_huge_border() -> None:
    settings = PhotoSettings(quantity=1)
    with pytest.raises(OutOfRangeError, match="border_width_mm"):
        render_sheet(_red_photo(), plan(settings, dpi=PREVIEW_DPI), settings, border_width_mm=11)


def test_export_raster_png_and_jpeg(tmp_path: Path) -> None:
    settings = PhotoSettings(quantity=2)
    layout = plan(settings, dpi=PREVIEW_DPI)
    sheet = render_sheet(_red_photo(), layout, settings)

    png = export_raster(sheet, tmp_path / "sheet.png", OutputFormat.PNG, dpi=PREVIEW_DPI)
    jpg = export_raster(sheet, tmp_path / "nested" / "sheet.jpg", OutputFormat.JPG, dpi=PREVIEW_DPI)

    with Image.open(png) as image:
        assert image.format == "PNG"
        assert image.size == sheet.size
    with Image.open(jpg) as image:
        assert image.format == "JPEG"


def test_export_raster_refuses_pdf(tmp_path: Path) -> None:
    with pytest.raises(RenderError):
        export_raster(Image.new("RGB", (10, 10)), tmp_path / "x.pdf", OutputFormat.PDF, dpi=300)


def test_export_pdf_writes_a4_document(tmp_path: Path) -> None:
    settings = PhotoSettings(quantity=12)
    output = export_pdf(_red_photo(), plan(settings), settings, tmp_path / "sheet.pdf", border_width_mm=0.5)

    data = output.read_bytes()
    assert data.startswith(b"%PDF")
    assert data.rstrip().endswith(b"%%EOF")
    assert b"/MediaBox" in data


def test_export_pdf_embeds_photo_as_jpeg(tmp_path: Path) -> None:
    settings = PhotoSettings(quantity=2)
    output = export_pdf(_red_photo(), plan(settings), settings, tmp_path / "sheet.pdf")

    data = output.read_bytes()
    assert b"/DCTDecode" in data


def test_sheet_filename_describes_settings() -> None:
    settings = PhotoSettings(width_mm=35, height_mm=45, quantity=8)
    on_date = date(2025, 1, 31)

    assert (
        sheet_filename("me.jpeg", settings, 0, OutputFormat.PDF, on_date)
        == "passport-photos_me_35x45mm_8photos_2025-01-31.pdf"
    )
    assert (
        sheet_filename("me.png", settings, 1.5, OutputFormat.JPEG, on_date)
        == "passport-photos_me_35x45mm_8photos_border-1.5mm_2025-01-31.jpg"
    )


def test_cropped_filename() -> None:
    assert (
        cropped_filename("face.jpg", 51, 51, date(2025, 6, 1))
        == "cropped-passport-photo_face_51x51mm_2025-06-01.png"
    )
