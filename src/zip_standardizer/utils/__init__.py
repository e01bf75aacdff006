"""Utility modules for zip_standardizer"""

from zip_standardizer.utils.display import display_groups, format_bytes

__all__ = [
    "display_groups",
    "format_bytes",
]
