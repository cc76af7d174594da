from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

from photosheet.cli import app
from photosheet.settings import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def presets_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "presets.json"
    monkeypatch.setenv("PHOTOSHEET_PRESETS_FILE", str(path))
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


def test_plan_prints_grid() -> None:
    result = runner.invoke(app, ["plan", "--width-mm", "25", "--height-mm", "35", "--quantity", "20"])

    assert result.exit_code == 0, result.output
    assert "Photos per row: 6" in result.output
    assert "Rows: 4" in result.output
    assert "295x413px" in result.output


def test_plan_lists_placements() -> None:
    result = runner.invoke(app, ["plan", "--quantity", "2", "--layout", "top-left", "--placements"])

    assert result.exit_code == 0, result.output
    assert "#1 row 0 col 0: x=118 y=118" in result.output
    assert "#2 row 0 col 1:" in result.output


def test_plan_rejects_out_of_range_settings() -> None:
    result = runner.invoke(app, ["plan", "--width-mm", "5"])

    assert result.exit_code == 2
    assert "width_mm" in result.output


def test_build_writes_png(tmp_path: Path) -> None:
    source = tmp_path / "me.png"
    Image.new("RGB", (300, 400), (90, 90, 90)).save(source)
    target = tmp_path / "sheet.png"

    result = runner.invoke(
        app, ["build", str(source), "--format", "png", "--quantity", "4", "--output", str(target)]
    )

    assert result.exit_code == 0, result.output
    assert target.exists()
    assert "4 per row, 1 row(s)" in result.output


def test_presets_round_trip_and_build_with_preset(tmp_path: Path) -> None:
    saved = runner.invoke(
        app, ["presets", "save", "visa", "--width-mm", "51", "--height-mm", "51", "--quantity", "4", "--border-mm", "1"]
    )
    assert saved.exit_code == 0, saved.output

    listed = runner.invoke(app, ["presets", "list"])
    assert "visa: 51x51mm x4" in listed.output
    assert "border 1mm" in listed.output

    source = tmp_path / "me.jpg"
    Image.new("RGB", (300, 400), (90, 90, 90)).save(source)
    built = runner.invoke(app, ["build", str(source), "--preset", "visa", "--output", str(tmp_path)])
    assert built.exit_code == 0, built.output
    assert "passport-photos_me_51x51mm_4photos_border-1mm_" in built.output

    deleted = runner.invoke(app, ["presets", "delete", "visa"])
    assert deleted.exit_code == 0
    assert runner.invoke(app, ["presets", "list"]).output.strip() == "No presets saved."


def test_build_with_unknown_preset_exits_2(tmp_path: Path) -> None:
    source = tmp_path / "me.jpg"
    Image.new("RGB", (30, 40)).save(source)

    result = runner.invoke(app, ["build", str(source), "--preset", "missing"])

    assert result.exit_code == 2


def test_remove_bg_without_keys_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REMOVEBG_API_KEY", raising=False)
    source = tmp_path / "me.jpg"
    Image.new("RGB", (30, 40)).save(source)

    result = runner.invoke(app, ["remove-bg", str(source)])

    assert result.exit_code == 1
    assert "No Remove.bg API keys configured" in result.output


def test_corrupt_presets_file_exits_1(tmp_path: Path, presets_file: Path) -> None:
    presets_file.write_text("{not json", encoding="utf-8")
    source = tmp_path / "me.jpg"
    Image.new("RGB", (30, 40)).save(source)

    for args in (
        ["presets", "list"],
        ["presets", "save", "visa"],
        ["presets", "delete", "visa"],
        ["build", str(source), "--preset", "visa"],
        ["preview", str(source), "--preset", "visa"],
    ):
        result = runner.invoke(app, args)

        assert result.exit_code == 1, args
        assert "Cannot read presets" in result.output
