"""Recompute the directory a project's files live under at rebuild time.

The root recorded during analysis may name nested archives with their
extension (``StudentA.zip/Intra``) while flattened entries name them without
it (``StudentA/Intra``), and matched nodes may sit slightly above or below
it. The effective root reconciles both.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from zip_standardizer.models.analysis import Project
from zip_standardizer.models.archive import Entry
from zip_standardizer.services.collector import is_zip_like, normalize_path, strip_zip_extension

logger = logging.getLogger(__name__)


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def root_variants(path: str) -> list[str]:
    """Return ``path`` as-is, then with ``.zip`` suffixes stripped from its
    segments, then without ``.zip`` segments, duplicates removed.

    Nested archives are flattened under their name minus the extension, so the
    stripped form comes before the one dropping those segments entirely."""
    segments = _segments(normalize_path(path))
    variants = [
        "/".join(segments),
        "/".join(strip_zip_extension(segment) for segment in segments),
        "/".join(segment for segment in segments if not is_zip_like(segment)),
    ]
    return list(dict.fromkeys(variants))


def common_ancestor(paths: Iterable[str]) -> str:
    """Longest common ancestor of ``paths``, compared segment by segment."""
    common: list[str] | None = None
    for path in paths:
        segments = _segments(path)
        if common is None:
            common = segments
            continue
        size = 0
        for left, right in zip(common, segments):
            if left != right:
                break
            size += 1
        common = common[:size]
    return "/".join(common or [])


def _is_related(first: str, second: str) -> bool:
    def _within(path: str, root: str) -> bool:
        return not root or path == root or path.startswith(f"{root}/")

    return _within(first, second) or _within(second, first)


class _PathIndex:
    def __init__(self, entries: Iterable[Entry]) -> None:
        self.files: set[str] = set()
        self.known: set[str] = set()
        self.children: dict[str, set[str]] = {}
        for entry in entries:
            path = normalize_path(entry.path)
            if not path:
                continue
            if not entry.is_dir:
                self.files.add(path)
            current = path
            while current and current not in self.known:
                self.known.add(current)
                parent = current.rpartition("/")[0]
                self.children.setdefault(parent, set()).add(current)
                current = parent

    def has_entries_under(self, path: str) -> bool:
        return not path or path in self.known

    def first_existing(self, path: str) -> str | None:
        for variant in root_variants(path):
            if self.has_entries_under(variant):
                return variant
        return None


def _match_locations(project: Project, index: _PathIndex) -> list[str]:
    locations: list[str] = []
    for match in project.matches:
        if not match.found_path:
            continue
        found = index.first_existing(match.found_path)
        if found is None:
            continue
        location = found.rpartition("/")[0] if found in index.files else found
        locations.append(location)
    return locations


def _resolve(project: Project, index: _PathIndex) -> str:
    nominal = normalize_path(project.nominal_root_path)
    base = index.first_existing(nominal)
    if base is None:
        return nominal

    locations = [path for path in _match_locations(project, index) if _is_related(path, base)]
    if not locations:
        return base

    resolved = common_ancestor([base, *locations])
    # A single file with siblings stands for its folder.
    if resolved in index.files:
        parent = resolved.rpartition("/")[0]
        siblings = index.children.get(parent, set()) - {resolved}
        if siblings:
            resolved = parent
    return resolved


def resolve_effective_root(project: Project, entries: Sequence[Entry]) -> str:
    """Return the directory whose entries belong to ``project``.

    When no matched node can be related to the nominal root, the first
    variant of the nominal root present in ``entries`` is returned (the
    nominal root itself if none is). A resolved root naming a file that has
    siblings is widened to the folder holding it. A root with no entries below it is
    valid and simply yields nothing to copy.
    """
    return _resolve(project, _PathIndex(entries))


def resolve_effective_roots(
    projects: Iterable[Project], entries: Sequence[Entry]
) -> dict[str, str]:
    """Resolve every project's root once, keyed by ``project_id``."""
    index = _PathIndex(entries)
    roots: dict[str, str] = {}
    for project in projects:
        roots[project.project_id] = _resolve(project, index)
        logger.debug("Project %s resolved to %r", project.project_id, roots[project.project_id])
    return roots
