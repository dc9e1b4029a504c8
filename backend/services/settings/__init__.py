"""Prompt template and configuration settings."""

from .service import SettingsService
from .store import SettingsStore
from .templates import interpolate

__all__ = ["SettingsService", "SettingsStore", "interpolate"]
