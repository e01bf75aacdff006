"""Archive entries as seen by the matcher and the rebuilder."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Entry:
    """One path inside an archive.

    Attributes:
        path: Slash-separated path without leading or trailing slash.
        is_dir: True for directories (explicit or synthesized).
        size: Uncompressed size in bytes when known.
    """

    path: str
    is_dir: bool
    size: int | None = None

    @property
    def name(self) -> str:
        return self.path.rpartition("/")[2]

    @property
    def parent(self) -> str:
        return self.path.rpartition("/")[0]


@dataclass(frozen=True, slots=True)
class VirtualEntry(Entry):
    """Entry whose path may span several nested archives.

    ``opener`` returns the member bytes for file entries; directories have none.
    """

    opener: Callable[[], bytes] | None = field(default=None, repr=False, compare=False)

    def read(self) -> bytes:
        if self.opener is None:
            raise IsADirectoryError(self.path)
        return self.opener()

    def as_entry(self) -> Entry:
        return Entry(path=self.path, is_dir=self.is_dir, size=self.size)
