"""Services"""

from zip_standardizer.services.collector import (
    ArchiveReader,
    DirectoryReader,
    ZipBytesReader,
    collect,
    collect_virtual,
    open_reader,
)
from zip_standardizer.services.matcher import analyze, analyze_roots, analyze_with_reader
from zip_standardizer.services.presets import build_preset_template, list_presets
from zip_standardizer.services.rebuilder import plan_rebuild, rebuild
from zip_standardizer.services.root_resolver import (
    resolve_effective_root,
    resolve_effective_roots,
)

__all__ = [
    "ArchiveReader",
    "DirectoryReader",
    "ZipBytesReader",
    "analyze",
    "analyze_roots",
    "analyze_with_reader",
    "build_preset_template",
    "collect",
    "collect_virtual",
    "list_presets",
    "open_reader",
    "plan_rebuild",
    "rebuild",
    "resolve_effective_root",
    "resolve_effective_roots",
]
