"""Named photo-setting presets persisted to a JSON file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from photosheet.config import PhotoSettings

logger = logging.getLogger(__name__)


class PresetNotFoundError(KeyError):
    """Raised when no preset matches a name or id."""


class PresetStoreError(RuntimeError):
    """Raised when the preset file cannot be read or written."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Preset(BaseModel):
    """A saved combination of photo settings and border width."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = Field(min_length=1)
    description: str | None = None
    settings: PhotoSettings = Field(default_factory=PhotoSettings)
    border_width_mm: float = Field(default=0.0, ge=0, le=10)
    created_at: datetime = Field(default_factory=_now)


_PRESET_LIST = TypeAdapter(list[Preset])


class PresetStore:
    """Load and save presets in a single JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> list[Preset]:
        if not self.path.exists():
            return []
        try:
            return _PRESET_LIST.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as exc:
            raise PresetStoreError(f"Cannot read presets from {self.path}: {exc}") from exc

    def _write(self, presets: list[Preset]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(_PRESET_LIST.dump_python(presets, mode="json"), indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=".presets-", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise PresetStoreError(f"Cannot write presets to {self.path}: {exc}") from exc

    def list_presets(self) -> list[Preset]:
        return sorted(self._read(), key=lambda preset: preset.created_at)

    def get(self, name_or_id: str) -> Preset:
        for preset in self._read():
            if name_or_id in (preset.name, preset.id):
                return preset
        raise PresetNotFoundError(name_or_id)

    def save(self, preset: Preset) -> Preset:
        """Store ``preset``, replacing one with the same name but keeping its id."""

        presets = self._read()
        for index, existing in enumerate(presets):
            if existing.name == preset.name:
                preset = preset.model_copy(update={"id": existing.id, "created_at": existing.created_at})
                presets[index] = preset
                break
        else:
            presets.append(preset)

        self._write(presets)
        logger.info("Saved preset '%s' to %s", preset.name, self.path)
        return preset

    def delete(self, name_or_id: str) -> Preset:
        presets = self._read()
        for index, preset in enumerate(presets):
            if name_or_id in (preset.name, preset.id):
                del presets[index]
                self._write(presets)
                logger.info("Deleted preset '%s'", preset.name)
                return preset
        raise PresetNotFoundError(name_or_id)
