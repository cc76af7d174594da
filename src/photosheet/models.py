"""Domain models used by photosheet."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from photosheet.config import MM_PER_INCH, OutputFormat, PhotoSettings


class LayoutPlan(BaseModel):
    """Rows, columns and final photo size for one sheet, in pixels at ``dpi``."""

    model_config = ConfigDict(frozen=True)

    dpi: float
    photos_per_row: int = Field(ge=1)
    total_rows: int = Field(ge=1)
    photo_width_px: int
    photo_height_px: int
    page_utilization: float
    scale: float = 1.0

    page_width_px: int
    page_height_px: int
    side_margin_px: int
    top_margin_px: int
    bottom_margin_px: int
    spacing_px: int
    available_width_px: int
    available_height_px: int

    @property
    def px_per_mm(self) -> float:
        return self.dpi / MM_PER_INCH

    @property
    def grid_width_px(self) -> int:
        return self.photos_per_row * self.photo_width_px + (self.photos_per_row - 1) * self.spacing_px

    @property
    def grid_height_px(self) -> int:
        return self.total_rows * self.photo_height_px + (self.total_rows - 1) * self.spacing_px

    @property
    def photo_width_mm(self) -> float:
        return self.photo_width_px / self.px_per_mm

    @property
    def photo_height_mm(self) -> float:
        return self.photo_height_px / self.px_per_mm


class BuildReport(BaseModel):
    """Summary returned by build_sheet and build_preview."""

    output: Path
    output_format: OutputFormat
    settings: PhotoSettings
    plan: LayoutPlan
    border_width_mm: float = 0.0
    background_removed: bool = False
    api_key_used: int | None = None
