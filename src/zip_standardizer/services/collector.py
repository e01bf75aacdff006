"""Flatten archives (and archives nested inside them) into virtual entries.

A nested archive ``a/b/Student.zip`` is expanded as if it were the directory
``a/b/Student``; its members appear below that prefix, at any depth up to the
configured limit.
"""

from __future__ import annotations

import asyncio
import functools
import io
import logging
import zlib
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from zipfile import BadZipFile, ZipFile, ZipInfo

from zip_standardizer.config import get_max_nesting_depth
from zip_standardizer.models.archive import Entry, VirtualEntry
from zip_standardizer.models.errors import ArchiveCorrupt, ArchiveTooDeep

logger = logging.getLogger(__name__)

ZIP_SUFFIXES = (".zipx", ".zip")


def is_zip_like(name: str) -> bool:
    """Return True when ``name`` looks like a ZIP archive (case-insensitive)."""
    return name.strip().lower().endswith(ZIP_SUFFIXES)


def strip_zip_extension(name: str) -> str:
    lowered = name.lower()
    for suffix in ZIP_SUFFIXES:
        if lowered.endswith(suffix):
            return name[: -len(suffix)]
    return name


def normalize_path(raw: str) -> str:
    """Convert an archive member name to a clean slash-separated path."""
    segments = [segment for segment in raw.replace("\\", "/").split("/") if segment]
    return "/".join(segments)


def join_path(prefix: str, path: str) -> str:
    if not prefix:
        return path
    if not path:
        return prefix
    return f"{prefix}/{path}"


class _EntryCollector:
    """Accumulate virtual entries, synthesizing missing parent directories."""

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self._entries: dict[str, VirtualEntry] = {}

    def add_directory(self, path: str) -> None:
        if not path or path in self._entries:
            return
        self.add_parents(path)
        self._entries[path] = VirtualEntry(path=path, is_dir=True)

    def add_parents(self, path: str) -> None:
        parent = path.rpartition("/")[0]
        if parent:
            self.add_directory(parent)

    def add_file(self, path: str, size: int | None, opener: Callable[[], bytes]) -> None:
        if path in self._entries:
            logger.debug("Duplicate virtual path %s ignored", path)
            return
        self.add_parents(path)
        self._entries[path] = VirtualEntry(path=path, is_dir=False, size=size, opener=opener)

    def collect_zip(self, archive: ZipFile, prefix: str, depth: int) -> None:
        for info in archive.infolist():
            clean = normalize_path(info.filename)
            if not clean:
                continue
            full_path = join_path(prefix, clean)

            if info.is_dir():
                self.add_directory(full_path)
                continue

            if is_zip_like(clean.rpartition("/")[2]):
                self._collect_nested_member(archive, info, full_path, depth)
                continue

            self.add_file(full_path, info.file_size, functools.partial(archive.read, info))

    def collect_directory(self, root: Path, prefix: str = "") -> None:
        for child in sorted(root.iterdir(), key=lambda item: item.name):
            full_path = join_path(prefix, child.name)
            if child.is_dir():
                self.add_directory(full_path)
                self.collect_directory(child, full_path)
                continue
            if not child.is_file():
                continue
            if is_zip_like(child.name):
                self._expand_nested(child.read_bytes(), full_path, depth=1)
                continue
            self.add_file(full_path, child.stat().st_size, child.read_bytes)

    def _collect_nested_member(
        self, archive: ZipFile, info: ZipInfo, full_path: str, depth: int
    ) -> None:
        try:
            data = archive.read(info)
        except (BadZipFile, OSError, zlib.error) as exc:
            logger.warning("Unable to read nested archive %s: %s", full_path, exc)
            self.add_file(full_path, info.file_size, functools.partial(archive.read, info))
            return
        self._expand_nested(data, full_path, depth + 1)

    def _expand_nested(self, data: bytes, full_path: str, depth: int) -> None:
        if depth > self.max_depth:
            raise ArchiveTooDeep(full_path, self.max_depth)
        try:
            nested = ZipFile(io.BytesIO(data))
        except (BadZipFile, OSError, ValueError) as exc:
            logger.warning("Unable to open nested archive %s, keeping it as a file: %s", full_path, exc)
            self.add_file(full_path, len(data), lambda: data)
            return

        parent, _, base = full_path.rpartition("/")
        virtual_root = join_path(parent, strip_zip_extension(base)) or parent
        logger.debug("Expanding nested archive %s as %s", full_path, virtual_root)
        self.add_directory(virtual_root)
        self.collect_zip(nested, virtual_root, depth)

    def sorted_entries(self) -> list[VirtualEntry]:
        """Directories first, then files, each in path order."""
        return sorted(self._entries.values(), key=lambda entry: (not entry.is_dir, entry.path))


def _open_archive(data: bytes) -> ZipFile:
    try:
        return ZipFile(io.BytesIO(data))
    except (BadZipFile, OSError, ValueError) as exc:
        raise ArchiveCorrupt("Provided data is not a valid ZIP archive") from exc


def collect_virtual(archive_bytes: bytes, max_depth: int | None = None) -> list[VirtualEntry]:
    """Flatten ``archive_bytes`` into virtual entries that can be read back.

    Raises:
        ArchiveCorrupt: If the top-level archive cannot be opened.
        ArchiveTooDeep: If nested archives exceed ``max_depth``.
    """
    collector = _EntryCollector(max_depth or get_max_nesting_depth())
    collector.collect_zip(_open_archive(archive_bytes), prefix="", depth=0)
    return collector.sorted_entries()


def collect(archive_bytes: bytes, max_depth: int | None = None) -> list[Entry]:
    """Flatten ``archive_bytes`` into plain entries (paths, kinds and sizes)."""
    return [entry.as_entry() for entry in collect_virtual(archive_bytes, max_depth)]


def collect_virtual_from_directory(
    directory: Path | str, max_depth: int | None = None
) -> list[VirtualEntry]:
    """Flatten a directory on disk, expanding the ZIP files it contains."""
    root = Path(directory)
    if not root.is_dir():
        raise ValueError(f"Invalid directory: {directory}")
    collector = _EntryCollector(max_depth or get_max_nesting_depth())
    collector.collect_directory(root)
    return collector.sorted_entries()


class ArchiveReader(ABC):
    """Source of entries for the matcher, whatever backs it."""

    kind: str = "abstract"

    @abstractmethod
    async def list_entries(self) -> list[Entry]:
        """Return the flattened entries of the source."""


class ZipBytesReader(ArchiveReader):
    """Reader over an in-memory ZIP archive."""

    kind = "zip"

    def __init__(self, data: bytes, name: str = "") -> None:
        self.data = data
        self.name = name

    @classmethod
    def from_path(cls, path: Path | str) -> ZipBytesReader:
        path = Path(path)
        if not is_zip_like(path.name) or not path.is_file():
            raise ArchiveCorrupt(f"Expected a .zip file. Received: {path.name}")
        return cls(path.read_bytes(), name=path.name)

    async def list_entries(self) -> list[Entry]:
        return await asyncio.to_thread(collect, self.data)


class DirectoryReader(ArchiveReader):
    """Reader over an extracted directory tree on disk."""

    kind = "directory"

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.name = self.root.name

    async def list_entries(self) -> list[Entry]:
        entries = await asyncio.to_thread(collect_virtual_from_directory, self.root)
        return [entry.as_entry() for entry in entries]


def open_reader(path: Path | str) -> ArchiveReader:
    """Pick a reader for ``path``: a directory or a ZIP file."""
    path = Path(path)
    if path.is_dir():
        return DirectoryReader(path)
    return ZipBytesReader.from_path(path)
