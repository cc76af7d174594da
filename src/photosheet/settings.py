"""Environment-backed settings for photosheet."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

REMOVEBG_API_URL = "https://api.remove.bg/v1.0/removebg"


class AppSettings(BaseSettings):
    """API credentials and file locations read from the environment or ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # remove.bg keys are tried in this order until one succeeds.
    removebg_api_key: Optional[str] = None
    removebg_api_key_2: Optional[str] = None
    removebg_api_key_3: Optional[str] = None
    removebg_api_key_4: Optional[str] = None
    removebg_api_key_5: Optional[str] = None
    removebg_api_key_6: Optional[str] = None
    removebg_api_key_7: Optional[str] = None
    removebg_api_key_8: Optional[str] = None
    removebg_api_key_9: Optional[str] = None
    removebg_api_key_10: Optional[str] = None

    removebg_api_url: str = REMOVEBG_API_URL
    removebg_timeout_seconds: float = Field(default=60.0, gt=0)

    photosheet_presets_file: Path = Path("~/.photosheet/presets.json")

    @property
    def removebg_api_keys(self) -> list[str]:
        candidates = [self.removebg_api_key] + [
            getattr(self, f"removebg_api_key_{index}") for index in range(2, 11)
        ]
        return [key.strip() for key in candidates if key and key.strip()]

    @property
    def presets_path(self) -> Path:
        return self.photosheet_presets_file.expanduser()


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached settings instance."""
    return AppSettings()
