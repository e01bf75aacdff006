"""Copy detected projects into a new archive under their new names."""

from __future__ import annotations

import io
import logging
import zlib
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from zip_standardizer.config import DEFAULT_OUTPUT_NAME, get_progress_interval
from zip_standardizer.models.analysis import Project, SubmissionGroup
from zip_standardizer.models.archive import VirtualEntry
from zip_standardizer.models.errors import Cancelled, EntryReadError
from zip_standardizer.services.collector import collect_virtual
from zip_standardizer.services.root_resolver import resolve_effective_roots

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str | None], None]
CancelCheck = Callable[[], bool]

_READ_ERRORS = (BadZipFile, OSError, zlib.error, NotImplementedError, RuntimeError)


@dataclass(frozen=True, slots=True)
class CopyStep:
    source: VirtualEntry
    destination: str


@dataclass(frozen=True, slots=True)
class ProjectPlan:
    project_id: str
    new_path: str
    effective_root: str
    steps: tuple[CopyStep, ...]


@dataclass(frozen=True, slots=True)
class RebuildPlan:
    projects: tuple[ProjectPlan, ...]

    @property
    def total_files(self) -> int:
        return max(sum(len(project.steps) for project in self.projects), 1)


def _destination(entry_path: str, root: str, new_path: str) -> str:
    if entry_path == root:
        return new_path
    relative = entry_path[len(root) + 1 :] if root else entry_path
    return f"{new_path}/{relative}"


def _entries_under(entries: Iterable[VirtualEntry], root: str) -> list[VirtualEntry]:
    prefix = f"{root}/" if root else ""
    return [
        entry
        for entry in entries
        if not entry.is_dir and (not root or entry.path == root or entry.path.startswith(prefix))
    ]


def _selected_projects(groups: Iterable[SubmissionGroup]) -> list[Project]:
    selected: list[Project] = []
    for group in groups:
        for project in group.projects:
            if not project.new_path.strip():
                logger.debug("Skipping project %s without a new path", project.project_id)
                continue
            selected.append(project)
    return selected


def plan_rebuild(entries: Sequence[VirtualEntry], groups: Iterable[SubmissionGroup]) -> RebuildPlan:
    """List, per project, which virtual file goes where in the new archive."""
    projects = _selected_projects(groups)
    roots = resolve_effective_roots(projects, entries)

    plans: list[ProjectPlan] = []
    for project in projects:
        new_path = project.new_path.strip().strip("/")
        root = roots[project.project_id]
        steps = tuple(
            CopyStep(source=entry, destination=_destination(entry.path, root, new_path))
            for entry in _entries_under(entries, root)
        )
        if not steps:
            logger.info("No files found under %r for project %s", root, project.project_id)
            continue
        plans.append(
            ProjectPlan(
                project_id=project.project_id,
                new_path=new_path,
                effective_root=root,
                steps=steps,
            )
        )
    return RebuildPlan(projects=tuple(plans))


def _read(entry: VirtualEntry) -> bytes:
    try:
        return entry.read()
    except _READ_ERRORS as exc:
        raise EntryReadError(entry.path) from exc


def rebuild(
    source_bytes: bytes,
    groups: Iterable[SubmissionGroup],
    output_name: str = DEFAULT_OUTPUT_NAME,
    on_progress: ProgressCallback | None = None,
    is_cancelled: CancelCheck | None = None,
) -> bytes:
    """Build a new archive holding every selected project under its new path.

    Args:
        source_bytes: The archive that was analyzed.
        groups: Analysis result, possibly with user-edited ``new_path`` values.
        output_name: Name of the archive being produced, used for logging.
        on_progress: Called with ``(ratio, destination)`` every few files, with
            ``(ratio, None)`` after each project and ``(1.0, None)`` at the end.
        is_cancelled: Polled before each project and each file.

    Returns:
        The bytes of the new ZIP archive.

    Raises:
        ArchiveCorrupt: If the source archive cannot be opened.
        ArchiveTooDeep: If nested archives exceed the configured depth.
        Cancelled: If ``is_cancelled`` returned True; nothing is returned.
        EntryReadError: If a source entry cannot be read.
    """
    entries = collect_virtual(source_bytes)
    plan = plan_rebuild(entries, groups)
    total = plan.total_files
    interval = get_progress_interval()
    done = 0

    def _cancelled() -> bool:
        return bool(is_cancelled and is_cancelled())

    if _cancelled():
        raise Cancelled()

    buffer = io.BytesIO()
    written: set[str] = set()
    with ZipFile(buffer, mode="w", compression=ZIP_DEFLATED) as archive:
        for project_plan in plan.projects:
            if _cancelled():
                raise Cancelled()
            for step in project_plan.steps:
                if _cancelled():
                    raise Cancelled()
                if step.destination in written:
                    logger.warning(
                        "Destination %s already written, skipping %s",
                        step.destination,
                        step.source.path,
                    )
                else:
                    archive.writestr(step.destination, _read(step.source))
                    written.add(step.destination)
                done += 1
                if on_progress and done % interval == 0:
                    on_progress(done / total, step.destination)
            if on_progress:
                on_progress(done / total, None)

    if on_progress:
        on_progress(1.0, None)
    logger.info("Built %s with %d file(s) from %d project(s)", output_name, len(written), len(plan.projects))
    return buffer.getvalue()
