"""Configuration models and enums for photosheet."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

MM_PER_INCH = 25.4
PRINT_DPI = 300
PREVIEW_DPI = 150


class OutputFormat(str, Enum):
    PDF = "pdf"
    PNG = "png"
    JPG = "jpg"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self in (OutputFormat.JPG, OutputFormat.JPEG) else self.value


class LayoutAnchor(str, Enum):
    AUTO = "auto"
    TOP_LEFT = "top-left"
    TOP_MIDDLE = "top-middle"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_MIDDLE = "middle-middle"
    MIDDLE_RIGHT = "middle-right"
    DOWN_LEFT = "down-left"
    DOWN_MIDDLE = "down-middle"
    DOWN_RIGHT = "down-right"

    @property
    def vertical(self) -> str:
        if self == LayoutAnchor.AUTO:
            return "middle"
        return self.value.split("-", 1)[0]

    @property
    def horizontal(self) -> str:
        if self == LayoutAnchor.AUTO:
            return "middle"
        return self.value.split("-", 1)[1]


class PageSpec(BaseModel):
    """Fixed page geometry in millimetres. The top margin lives on PhotoSettings."""

    model_config = ConfigDict(frozen=True)

    width_mm: float = Field(default=210.0, gt=0)
    height_mm: float = Field(default=297.0, gt=0)
    side_margin_mm: float = Field(default=10.0, ge=0)
    bottom_margin_mm: float = Field(default=10.0, ge=0)

    @model_validator(mode="after")
    def validate_printable_width(self) -> "PageSpec":
        if 2 * self.side_margin_mm >= self.width_mm:
            raise ValueError("side margins leave no printable width")
        return self


A4 = PageSpec()


class PhotoSettings(BaseModel):
    """User-adjustable photo size, quantity and placement on the sheet."""

    model_config = ConfigDict(frozen=True)

    width_mm: float = Field(default=35.0, ge=10, le=100)
    height_mm: float = Field(default=45.0, ge=10, le=150)
    quantity: int = Field(default=8, ge=1, le=20)
    spacing_mm: float = Field(default=5.0, ge=0, le=20)
    top_margin_mm: float = Field(default=10.0, ge=5, le=50)
    layout: LayoutAnchor = LayoutAnchor.AUTO


class CropSettings(BaseModel):
    """Crop window in percent of the source image, plus rotation and scale."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(default=0.0, ge=-100, le=100)
    y: float = Field(default=0.0, ge=-100, le=100)
    width: float = Field(default=100.0, ge=20, le=100)
    height: float = Field(default=100.0, ge=20, le=100)
    scale: float = Field(default=1.0, ge=0.1, le=5)
    rotation: float = Field(default=0.0, ge=-180, le=180)

    @property
    def is_identity(self) -> bool:
        return self == CropSettings()
