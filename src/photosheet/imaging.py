"""Source image loading, cropping, resizing and framing with Pillow."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from photosheet.config import CropSettings
from photosheet.planner import round_half_up

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
MIN_INNER_PX = 10


class ImageLoadError(RuntimeError):
    """Raised when a source photo cannot be read as an image."""


def _flatten(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def open_image(data: bytes) -> Image.Image:
    """Decode image bytes into an upright RGB image on a white background."""

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageLoadError(f"Unsupported or corrupt image: {exc}") from exc

    return _flatten(ImageOps.exif_transpose(image))


def load_image(path: Path) -> Image.Image:
    if not path.exists() or not path.is_file():
        raise ImageLoadError(f"Image file not found: {path}")
    return open_image(path.read_bytes())


def crop_box(size: tuple[int, int], crop: CropSettings) -> tuple[int, int, int, int]:
    """Return the (left, top, right, bottom) box selected by ``crop``, clamped to the image."""

    width, height = size
    crop_width = min(round_half_up(width * crop.width / 100), width)
    crop_height = min(round_half_up(height * crop.height / 100), height)
    left = round_half_up((width - crop_width) / 2 + width * crop.x / 100)
    top = round_half_up((height - crop_height) / 2 + height * crop.y / 100)

    left = max(0, min(left, width - crop_width))
    top = max(0, min(top, height - crop_height))
    return left, top, left + crop_width, top + crop_height


def apply_crop(image: Image.Image, crop: CropSettings) -> Image.Image:
    """Crop, then rotate clockwise, then scale."""

    result = image.crop(crop_box(image.size, crop))

    if crop.rotation != 0:
        result = result.rotate(
            -crop.rotation,
            resample=Image.Resampling.BICUBIC,
            expand=True,
            fillcolor=WHITE,
        )

    if crop.scale != 1:
        new_size = (
            max(1, round_half_up(result.width * crop.scale)),
            max(1, round_half_up(result.height * crop.scale)),
        )
        result = result.resize(new_size, Image.Resampling.LANCZOS)

    return result


def fit_cover(image: Image.Image, width: int, height: int) -> Image.Image:
    """Resize to cover ``width`` x ``height`` and centre-crop the overflow."""

    return ImageOps.fit(image, (width, height), method=Image.Resampling.LANCZOS)


def frame_photo(image: Image.Image, width: int, height: int, border_px: int = 0) -> Image.Image:
    """Return the photo at exactly ``width`` x ``height``, optionally inside a black border.

    Borders of a third of the photo width or more are dropped and the photo is
    rendered borderless.
    """

    if border_px <= 0:
        return fit_cover(image, width, height)

    inner_width = max(MIN_INNER_PX, width - 2 * border_px)
    inner_height = max(MIN_INNER_PX, height - 2 * border_px)
    if border_px >= width / 3 or inner_width + 2 * border_px > width or inner_height + 2 * border_px > height:
        logger.info(
            "Border too large (%dpx) for photo size (%dx%dpx), using without border",
            border_px,
            width,
            height,
        )
        return fit_cover(image, width, height)

    framed = Image.new("RGB", (width, height), BLACK)
    framed.paste(fit_cover(image, inner_width, inner_height), (border_px, border_px))
    return framed
