import io
from datetime import date
from pathlib import Path

import pytest
from PIL import Image

from photosheet import builder
from photosheet.background import BackgroundRemovalResult, NoApiKeysError
from photosheet.config import CropSettings, OutputFormat, PhotoSettings
from photosheet.imaging import ImageLoadError
from photosheet.settings import AppSettings


@pytest.fixture()
def portrait(tmp_path: Path) -> Path:
    path = tmp_path / "face.jpg"
    Image.new("RGB", (600, 800), (200, 150, 120)).save(path, format="JPEG")
    return path


def _png_bytes(color: tuple[int, int, int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (60, 80), color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_build_sheet_pdf_into_directory(tmp_path: Path, portrait: Path) -> None:
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    report = builder.build_sheet(portrait, out_dir, PhotoSettings(), on_date=date(2025, 1, 31))

    assert report.output == out_dir / "passport-photos_face_35x45mm_8photos_2025-01-31.pdf"
    assert report.output.read_bytes().startswith(b"%PDF")
    assert report.plan.photos_per_row == 8
    assert report.background_removed is False


def test_build_sheet_png_to_explicit_file(tmp_path: Path, portrait: Path) -> None:
    target = tmp_path / "sheet.png"
    settings = PhotoSettings(quantity=2, width_mm=40, height_mm=50)

    report = builder.build_sheet(
        portrait,
        target,
        settings,
        output_format=OutputFormat.PNG,
        border_width_mm=1,
        crop=CropSettings(width=80, height=80),
    )

    assert report.output == target
    with Image.open(target) as image:
        assert image.size == (report.plan.page_width_px, report.plan.page_height_px)
        assert report.plan.photo_width_px == 472


def test_build_sheet_with_background_removal(
    tmp_path: Path, portrait: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = {}

    def fake_remove_background(image_bytes, filename, mime_type, api_keys, **kwargs):
        calls.update(filename=filename, mime_type=mime_type, api_keys=api_keys, **kwargs)
        return BackgroundRemovalResult(content=_png_bytes((0, 0, 255, 255)), api_key_index=3)

    monkeypatch.setattr(builder, "remove_background", fake_remove_background)

    report = builder.build_sheet(
        portrait,
        tmp_path / "sheet.jpg",
        PhotoSettings(quantity=1),
        output_format=OutputFormat.JPG,
        remove_bg=True,
        background_color="#0000ff",
        app_settings=AppSettings(removebg_api_key="k1", removebg_api_key_2="k2"),
        dpi=150,
    )

    assert report.background_removed is True
    assert report.api_key_used == 3
    assert calls["filename"] == "face.jpg"
    assert calls["mime_type"] == "image/jpeg"
    assert calls["api_keys"] == ["k1", "k2"]
    assert calls["background_color"] == "#0000ff"


def test_build_sheet_without_keys_fails(tmp_path: Path, portrait: Path) -> None:
    with pytest.raises(NoApiKeysError):
        builder.build_sheet(
            portrait,
            tmp_path,
            PhotoSettings(),
            remove_bg=True,
            app_settings=AppSettings(_env_file=None),
        )


def test_build_sheet_missing_source(tmp_path: Path) -> None:
    with pytest.raises(ImageLoadError):
        builder.build_sheet(tmp_path / "nope.jpg", tmp_path, PhotoSettings())


def test_build_preview_is_low_resolution_jpeg(tmp_path: Path, portrait: Path) -> None:
    report = builder.build_preview(portrait, tmp_path, PhotoSettings(quantity=12))

    assert report.output == tmp_path / "preview_face.jpg"
    assert report.plan.dpi == 150
    with Image.open(report.output) as image:
        assert image.format == "JPEG"
        assert image.size == (1240, 1754)


def test_export_cropped_photo(tmp_path: Path, portrait: Path) -> None:
    target = builder.export_cropped_photo(
        portrait,
        tmp_path,
        CropSettings(width=60, height=60),
        35,
        45,
        on_date=date(2025, 3, 1),
    )

    assert target.name == "cropped-passport-photo_face_35x45mm_2025-03-01.png"
    with Image.open(target) as image:
        assert image.size == (413, 531)


def test_remove_background_to_file(tmp_path: Path, portrait: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        builder,
        "remove_background",
        lambda *args, **kwargs: BackgroundRemovalResult(content=b"PNG", api_key_index=1),
    )

    target, key_index = builder.remove_background_to_file(
        portrait, tmp_path, app_settings=AppSettings(removebg_api_key="k")
    )

    assert target == tmp_path / "bg_removed_face.png"
    assert target.read_bytes() == b"PNG"
    assert key_index == 1
