"""Validation errors raised around layout planning."""

from __future__ import annotations


class LayoutValidationError(ValueError):
    """Base class for settings that cannot produce a layout. Names the field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class OutOfRangeError(LayoutValidationError):
    """Raised when a value falls outside its documented bounds."""

    def __init__(self, field: str, value: float, low: float | None = None, high: float | None = None) -> None:
        if low is not None and high is not None:
            bounds = f"[{low:g}, {high:g}]"
        elif low is not None:
            bounds = f">= {low:g}"
        else:
            bounds = f"<= {high:g}"
        super().__init__(field, f"{value:g} is outside {bounds}")
        self.value = value
        self.low = low
        self.high = high


class InconsistentSettingsError(LayoutValidationError):
    """Raised when individually valid settings combine into an unusable layout."""
