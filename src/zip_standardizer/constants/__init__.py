from __future__ import annotations

from zip_standardizer.constants.presets import PRESET_LAYOUTS, PresetKey

__all__ = [
    "PRESET_LAYOUTS",
    "PresetKey",
]
