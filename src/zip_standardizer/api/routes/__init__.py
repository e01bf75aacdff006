"""Route handlers for the API."""

from zip_standardizer.api.routes import analysis, health, presets, rebuilds

__all__ = [
    "analysis",
    "health",
    "presets",
    "rebuilds",
]
