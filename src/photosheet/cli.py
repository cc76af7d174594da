"""Typer CLI entrypoint for photosheet."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from photosheet.builder import build_preview, build_sheet, export_cropped_photo, remove_background_to_file
from photosheet.config import PRINT_DPI, CropSettings, LayoutAnchor, OutputFormat, PhotoSettings
from photosheet.errors import LayoutValidationError
from photosheet.placement import place
from photosheet.planner import plan as plan_layout
from photosheet.presets import Preset, PresetNotFoundError, PresetStore, PresetStoreError
from photosheet.settings import get_settings

app = typer.Typer(help="Lay out passport photos on an A4 sheet and export PDF/PNG/JPG.", no_args_is_help=True)
presets_app = typer.Typer(help="Manage saved photo presets.", no_args_is_help=True)
app.add_typer(presets_app, name="presets")


@app.callback()
def main(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Repeat for more detail."),
) -> None:
    """photosheet command group."""

    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _store() -> PresetStore:
    return PresetStore(get_settings().presets_path)


def _photo_settings(
    *,
    preset: str | None,
    width_mm: float | None,
    height_mm: float | None,
    quantity: int | None,
    spacing_mm: float | None,
    top_margin_mm: float | None,
    layout: LayoutAnchor | None,
) -> tuple[PhotoSettings, float | None]:
    """Merge explicit options over a preset (or the defaults)."""

    base = PhotoSettings()
    border_width_mm = None
    if preset is not None:
        try:
            saved = _store().get(preset)
        except PresetNotFoundError as exc:
            typer.echo(f"Preset not found: {preset}", err=True)
            raise typer.Exit(code=2) from exc
        except PresetStoreError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
        base = saved.settings
        border_width_mm = saved.border_width_mm

    overrides = {
        "width_mm": width_mm,
        "height_mm": height_mm,
        "quantity": quantity,
        "spacing_mm": spacing_mm,
        "top_margin_mm": top_margin_mm,
        "layout": layout,
    }
    values = base.model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return PhotoSettings(**values), border_width_mm


def _crop_settings(x: float, y: float, width: float, height: float, scale: float, rotation: float) -> CropSettings:
    return CropSettings(x=x, y=y, width=width, height=height, scale=scale, rotation=rotation)


@app.command()
def plan(
    width_mm: float = typer.Option(35.0, "--width-mm"),
    height_mm: float = typer.Option(45.0, "--height-mm"),
    quantity: int = typer.Option(8, min=1, max=20),
    spacing_mm: float = typer.Option(5.0, "--spacing-mm"),
    top_margin_mm: float = typer.Option(10.0, "--top-margin-mm"),
    layout: LayoutAnchor = typer.Option(LayoutAnchor.AUTO),
    dpi: float = typer.Option(float(PRINT_DPI)),
    placements: bool = typer.Option(False, "--placements", help="List every photo position."),
) -> None:
    """Print the rows, columns and photo size chosen for these settings."""

    try:
        settings = PhotoSettings(
            width_mm=width_mm,
            height_mm=height_mm,
            quantity=quantity,
            spacing_mm=spacing_mm,
            top_margin_mm=top_margin_mm,
            layout=layout,
        )
        result = plan_layout(settings, dpi=dpi)
    except (ValidationError, LayoutValidationError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    typer.echo(f"Photos per row: {result.photos_per_row}")
    typer.echo(f"Rows: {result.total_rows}")
    typer.echo(
        f"Photo size: {result.photo_width_px}x{result.photo_height_px}px "
        f"({result.photo_width_mm:.1f}x{result.photo_height_mm:.1f}mm at {dpi:g} DPI)"
    )
    typer.echo(f"Page utilization: {result.page_utilization:.1%}")

    if placements:
        for item in place(result, settings):
            typer.echo(f"#{item.index + 1} row {item.row} col {item.column}: x={item.x} y={item.y}")


@app.command()
def build(
    image: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Output file or directory."),
    output_format: OutputFormat = typer.Option(OutputFormat.PDF, "--format"),
    preset: str | None = typer.Option(None, help="Start from a saved preset."),
    width_mm: float | None = typer.Option(None, "--width-mm"),
    height_mm: float | None = typer.Option(None, "--height-mm"),
    quantity: int | None = typer.Option(None),
    spacing_mm: float | None = typer.Option(None, "--spacing-mm"),
    top_margin_mm: float | None = typer.Option(None, "--top-margin-mm"),
    layout: LayoutAnchor | None = typer.Option(None),
    border_mm: float | None = typer.Option(None, "--border-mm"),
    crop_x: float = typer.Option(0.0),
    crop_y: float = typer.Option(0.0),
    crop_width: float = typer.Option(100.0),
    crop_height: float = typer.Option(100.0),
    crop_scale: float = typer.Option(1.0),
    rotation: float = typer.Option(0.0),
    remove_bg: bool = typer.Option(False, "--remove-bg/--keep-bg"),
    bg_color: str = typer.Option("#ffffff"),
) -> None:
    """Render a sheet of passport photos from IMAGE."""

    try:
        settings, preset_border = _photo_settings(
            preset=preset,
            width_mm=width_mm,
            height_mm=height_mm,
            quantity=quantity,
            spacing_mm=spacing_mm,
            top_margin_mm=top_margin_mm,
            layout=layout,
        )
        crop = _crop_settings(crop_x, crop_y, crop_width, crop_height, crop_scale, rotation)
    except ValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    border = border_mm if border_mm is not None else (preset_border or 0.0)

    try:
        report = build_sheet(
            image,
            output,
            settings,
            output_format=output_format,
            border_width_mm=border,
            crop=crop,
            remove_bg=remove_bg,
            background_color=bg_color,
        )
    except LayoutValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    except Exception as exc:
        typer.echo(f"Build failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(
        f"Laid out {settings.quantity} photo(s): {report.plan.photos_per_row} per row, "
        f"{report.plan.total_rows} row(s), {report.plan.page_utilization:.1%} of the page."
    )
    if report.api_key_used is not None:
        typer.echo(f"Background removed with API key #{report.api_key_used}.")
    typer.echo(f"Output: {report.output}")


@app.command()
def preview(
    image: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    output: Path = typer.Option(Path("."), "--output", "-o"),
    preset: str | None = typer.Option(None),
    width_mm: float | None = typer.Option(None, "--width-mm"),
    height_mm: float | None = typer.Option(None, "--height-mm"),
    quantity: int | None = typer.Option(None),
    spacing_mm: float | None = typer.Option(None, "--spacing-mm"),
    top_margin_mm: float | None = typer.Option(None, "--top-margin-mm"),
    layout: LayoutAnchor | None = typer.Option(None),
    border_mm: float | None = typer.Option(None, "--border-mm"),
) -> None:
    """Write a 150 DPI JPEG preview of the sheet."""

    try:
        settings, preset_border = _photo_settings(
            preset=preset,
            width_mm=width_mm,
            height_mm=height_mm,
            quantity=quantity,
            spacing_mm=spacing_mm,
            top_margin_mm=top_margin_mm,
            layout=layout,
        )
    except ValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    border = border_mm if border_mm is not None else (preset_border or 0.0)

    try:
        report = build_preview(image, output, settings, border_width_mm=border)
    except LayoutValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    except Exception as exc:
        typer.echo(f"Preview failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Output: {report.output}")


@app.command()
def crop(
    image: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    output: Path = typer.Option(Path("."), "--output", "-o"),
    width_mm: float = typer.Option(35.0, "--width-mm", min=10, max=100),
    height_mm: float = typer.Option(45.0, "--height-mm", min=10, max=150),
    crop_x: float = typer.Option(0.0),
    crop_y: float = typer.Option(0.0),
    crop_width: float = typer.Option(100.0),
    crop_height: float = typer.Option(100.0),
    crop_scale: float = typer.Option(1.0),
    rotation: float = typer.Option(0.0),
) -> None:
    """Export a single cropped passport photo as PNG."""

    try:
        crop_settings = _crop_settings(crop_x, crop_y, crop_width, crop_height, crop_scale, rotation)
    except ValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    try:
        target = export_cropped_photo(image, output, crop_settings, width_mm, height_mm)
    except Exception as exc:
        typer.echo(f"Crop failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Output: {target}")


@app.command("remove-bg")
def remove_bg(
    image: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    output: Path = typer.Option(Path("."), "--output", "-o"),
    bg_color: str = typer.Option("#ffffff"),
) -> None:
    """Replace the photo background through remove.bg."""

    try:
        target, key_index = remove_background_to_file(image, output, background_color=bg_color)
    except Exception as exc:
        typer.echo(f"Background removal failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Background removed with API key #{key_index}.")
    typer.echo(f"Output: {target}")


@presets_app.command("list")
def presets_list() -> None:
    """Show saved presets."""

    try:
        presets = _store().list_presets()
    except PresetStoreError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    if not presets:
        typer.echo("No presets saved.")
        return

    for preset in presets:
        settings = preset.settings
        border = f", border {preset.border_width_mm:g}mm" if preset.border_width_mm else ""
        typer.echo(
            f"{preset.name}: {settings.width_mm:g}x{settings.height_mm:g}mm x{settings.quantity}, "
            f"spacing {settings.spacing_mm:g}mm, {settings.layout.value}{border}"
        )
        if preset.description:
            typer.echo(f"  {preset.description}")


@presets_app.command("save")
def presets_save(
    name: str = typer.Argument(...),
    description: str | None = typer.Option(None),
    width_mm: float = typer.Option(35.0, "--width-mm"),
    height_mm: float = typer.Option(45.0, "--height-mm"),
    quantity: int = typer.Option(8),
    spacing_mm: float = typer.Option(5.0, "--spacing-mm"),
    top_margin_mm: float = typer.Option(10.0, "--top-margin-mm"),
    layout: LayoutAnchor = typer.Option(LayoutAnchor.AUTO),
    border_mm: float = typer.Option(0.0, "--border-mm"),
) -> None:
    """Save (or overwrite) a named preset."""

    try:
        preset = Preset(
            name=name,
            description=description,
            settings=PhotoSettings(
                width_mm=width_mm,
                height_mm=height_mm,
                quantity=quantity,
                spacing_mm=spacing_mm,
                top_margin_mm=top_margin_mm,
                layout=layout,
            ),
            border_width_mm=border_mm,
        )
    except ValidationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    try:
        saved = _store().save(preset)
    except PresetStoreError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Saved preset '{saved.name}' ({saved.id}).")


@presets_app.command("delete")
def presets_delete(name: str = typer.Argument(...)) -> None:
    """Delete a preset by name or id."""

    try:
        removed = _store().delete(name)
    except PresetNotFoundError as exc:
        typer.echo(f"Preset not found: {name}", err=True)
        raise typer.Exit(code=1) from exc
    except PresetStoreError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Deleted preset '{removed.name}'.")
