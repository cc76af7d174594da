"""Background removal through the remove.bg API with API key fallback."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx

from photosheet.settings import REMOVEBG_API_URL

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class BackgroundRemovalError(RuntimeError):
    """Raised when every configured API key failed to remove the background."""

    def __init__(self, message: str, last_error: str | None = None) -> None:
        super().__init__(message if last_error is None else f"{message}: {last_error}")
        self.last_error = last_error


class NoApiKeysError(BackgroundRemovalError):
    """Raised when no remove.bg API key is configured."""


@dataclass(frozen=True)
class BackgroundRemovalResult:
    content: bytes
    api_key_index: int


def normalize_background_color(color: str) -> str:
    """Validate a ``#RRGGBB`` colour and return it without the leading ``#``."""

    if not _HEX_COLOR_RE.match(color):
        raise ValueError(f"Background colour must look like #RRGGBB, got '{color}'")
    return color[1:].lower()


def remove_background(
    image_bytes: bytes,
    filename: str,
    mime_type: str,
    api_keys: list[str],
    *,
    background_color: str = "#ffffff",
    api_url: str = REMOVEBG_API_URL,
    timeout_seconds: float = 60.0,
    transport: httpx.BaseTransport | None = None,
) -> BackgroundRemovalResult:
    """Send the image to remove.bg, trying each key in order until one succeeds."""

    if not api_keys:
        raise NoApiKeysError("No Remove.bg API keys configured")

    bg_color = normalize_background_color(background_color)
    logger.info("Found %d Remove.bg API keys for fallback", len(api_keys))

    last_error: str | None = None
    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        for index, api_key in enumerate(api_keys, start=1):
            logger.info("Trying Remove.bg API key #%d...", index)
            try:
                response = client.post(
                    api_url,
                    headers={"X-Api-Key": api_key},
                    files={"image_file": (filename, image_bytes, mime_type)},
                    data={"size": "auto", "bg_color": bg_color},
                )
            except httpx.HTTPError as exc:
                last_error = f"API key #{index} error: {exc}"
                logger.warning(last_error)
                continue

            if response.is_success:
                logger.info("Remove.bg API key #%d succeeded", index)
                return BackgroundRemovalResult(content=response.content, api_key_index=index)

            last_error = f"API key #{index} failed: {response.status_code} - {response.text}"
            logger.warning(last_error)

    logger.error("All Remove.bg API keys failed: %s", last_error)
    raise BackgroundRemovalError("Background removal failed - all API keys exhausted", last_error)
