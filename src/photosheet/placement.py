"""Grid origin and per-photo positions for a computed layout plan."""

from __future__ import annotations

from dataclasses import dataclass

from photosheet.config import LayoutAnchor, PhotoSettings
from photosheet.models import LayoutPlan
from photosheet.planner import round_half_up


@dataclass(frozen=True)
class Placement:
    """Top-left corner and size of one photo copy, in pixels."""

    index: int
    row: int
    column: int
    x: int
    y: int
    width: int
    height: int


def grid_origin(plan: LayoutPlan, layout: LayoutAnchor) -> tuple[float, float]:
    """Return the unrounded top-left corner of the photo grid."""

    grid_width = plan.grid_width_px
    grid_height = plan.grid_height_px

    if layout.horizontal == "left":
        start_x = float(plan.side_margin_px)
    elif layout.horizontal == "right":
        start_x = float(plan.page_width_px - plan.side_margin_px - grid_width)
    else:
        start_x = (plan.page_width_px - grid_width) / 2

    if layout.vertical == "top":
        start_y = float(plan.top_margin_px)
    elif layout.vertical == "down":
        start_y = float(plan.page_height_px - plan.bottom_margin_px - grid_height)
    else:
        start_y = plan.top_margin_px + (plan.available_height_px - grid_height) / 2

    return start_x, start_y


def place(plan: LayoutPlan, settings: PhotoSettings) -> list[Placement]:
    """Lay out ``settings.quantity`` copies row by row; the last row may be partial."""

    start_x, start_y = grid_origin(plan, settings.layout)
    step_x = plan.photo_width_px + plan.spacing_px
    step_y = plan.photo_height_px + plan.spacing_px

    placements: list[Placement] = []
    for row in range(plan.total_rows):
        for column in range(plan.photos_per_row):
            if len(placements) >= settings.quantity:
                return placements
            placements.append(
                Placement(
                    index=len(placements),
                    row=row,
                    column=column,
                    x=round_half_up(start_x + column * step_x),
                    y=round_half_up(start_y + row * step_y),
                    width=plan.photo_width_px,
                    height=plan.photo_height_px,
                )
            )
    return placements
