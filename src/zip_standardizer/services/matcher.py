"""Detect projects matching a template inside a flattened archive."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from zip_standardizer.models.analysis import (
    MatchResult,
    MatchStatus,
    Project,
    RootAnalysis,
    SubmissionGroup,
)
from zip_standardizer.models.archive import Entry
from zip_standardizer.models.template import Template, TemplateNode
from zip_standardizer.services.collector import ArchiveReader, normalize_path

logger = logging.getLogger(__name__)

FOUND_SCORE = 100
MISSING_SCORE = 0
DEFAULT_PROJECT_NAME = "project"


@dataclass(slots=True)
class EntryIndex:
    """Directory listing built from a flat entry list.

    Attributes:
        children: Child entries of every directory path, sorted by path.
        directories: Every directory path, implicit parents included.
    """

    children: dict[str, list[Entry]] = field(default_factory=dict)
    directories: set[str] = field(default_factory=set)

    @classmethod
    def build(cls, entries: Iterable[Entry]) -> EntryIndex:
        index = cls()
        seen: dict[str, Entry] = {}

        def _add(entry: Entry) -> None:
            if entry.path in seen:
                return
            seen[entry.path] = entry
            parent = entry.parent
            if parent and parent not in seen:
                _add(Entry(path=parent, is_dir=True))
            index.children.setdefault(parent, []).append(entry)
            if entry.is_dir:
                index.directories.add(entry.path)

        for entry in entries:
            path = normalize_path(entry.path)
            if not path:
                continue
            _add(Entry(path=path, is_dir=entry.is_dir, size=entry.size))

        for listing in index.children.values():
            listing.sort(key=lambda item: item.path)
        return index

    def directories_under(self, root: str) -> list[str]:
        """Return ``root`` (when it is a directory or the scan root) and every
        directory below it, shallow first."""
        prefix = f"{root}/" if root else ""
        found = [path for path in self.directories if path.startswith(prefix)]
        if not root or root in self.directories:
            found.append(root)
        return sorted(set(found), key=lambda path: (_depth(path), path))


def _depth(path: str) -> int:
    return len(path.split("/")) if path else 0


def _is_within(path: str, root: str) -> bool:
    if not root:
        return True
    return path == root or path.startswith(f"{root}/")


def _overlaps(first: str, second: str) -> bool:
    return _is_within(first, second) or _is_within(second, first)


def _leaf(path: str) -> str:
    return path.rpartition("/")[2]


def suggest_new_path(group_name: str, project_root: str) -> str:
    """Join the group name and the project folder name with an underscore."""
    parts = [part for part in (group_name, _leaf(project_root)) if part]
    return "_".join(parts) or DEFAULT_PROJECT_NAME


def _is_wildcard_directory(node: TemplateNode) -> bool:
    return node.is_directory and node.pattern.is_wildcard


def _similarity(matched: int, total: int) -> int:
    return math.floor(matched / total * 100 + 0.5)


class TemplateMatcher:
    """Score directories of one entry set against one template root.

    Partial subtree matches are memoized per ``(node id, parent path)`` for the
    lifetime of the matcher, which lives for a single analysis call.
    """

    def __init__(self, template: Template, index: EntryIndex, root_id: str | None = None) -> None:
        self.template = template
        self.index = index
        self.anchor = template.nodes[root_id or template.root_ids[0]]
        if self.anchor.is_directory:
            self.top_level_ids = list(self.anchor.children)
            self.scored_nodes = list(template.descendants(self.anchor.id))
        else:
            self.top_level_ids = [self.anchor.id]
            self.scored_nodes = [self.anchor]
        self._memo: dict[tuple[str, str], dict[str, str]] = {}

    @property
    def total_node_count(self) -> int:
        return len(self.scored_nodes)

    def match_under(self, root: str) -> dict[str, str]:
        """Return ``{node id: found path}`` for nodes found below ``root``."""
        return self._match_children(self.top_level_ids, root)

    def _match_children(self, node_ids: Sequence[str], parent_path: str) -> dict[str, str]:
        found: dict[str, str] = {}
        for node_id in node_ids:
            found.update(self._match_node(self.template.nodes[node_id], parent_path))
        return found

    def _match_node(self, node: TemplateNode, parent_path: str) -> dict[str, str]:
        key = (node.id, parent_path)
        if key in self._memo:
            return self._memo[key]

        pattern = node.pattern
        best: dict[str, str] = {}
        for entry in self.index.children.get(parent_path, ()):
            if entry.is_dir != node.is_directory or not pattern.matches(entry.name):
                continue
            found = {node.id: entry.path}
            if node.children:
                found.update(self._match_children(node.children, entry.path))
            # Ties keep the alphabetically first entry.
            if len(found) > len(best):
                best = found
            if not pattern.is_wildcard:
                break

        self._memo[key] = best
        return best

    def is_anchored(self, project: Project) -> bool:
        """Whether a top-level node other than a wildcard folder was found
        directly in the project root.

        A root whose only top-level matches are wildcard folders is really a
        set of sibling folders, each a project of its own.
        """
        found = {match.template_node_id for match in project.matches if match.found_path}
        return any(
            node_id in found and not _is_wildcard_directory(self.template.nodes[node_id])
            for node_id in self.top_level_ids
        )

    def evaluate(self, group_name: str, root: str) -> Project:
        found = self.match_under(root)
        matches = tuple(
            MatchResult(
                template_node_id=node.id,
                found_path=found.get(node.id, ""),
                score=FOUND_SCORE if node.id in found else MISSING_SCORE,
                status=MatchStatus.FOUND if node.id in found else MatchStatus.MISSING,
            )
            for node in self.scored_nodes
        )
        matched = sum(1 for match in matches if match.status is MatchStatus.FOUND)
        total = self.total_node_count
        suggested = suggest_new_path(group_name, root)
        return Project(
            project_id=f"{group_name}::{root}",
            nominal_root_path=root,
            score=_similarity(matched, total or 1),
            matched_node_count=matched,
            total_node_count=total,
            matches=matches,
            suggested_new_path=suggested,
            new_path=suggested,
        )


def _resolve_scope(index: EntryIndex, student_root_path: str) -> str:
    scope = normalize_path(student_root_path)
    if scope and scope not in index.directories:
        logger.info("Student root %r not found in archive, scanning from the root", scope)
        return ""
    return scope


def _pick_projects(
    candidates: Iterable[Project], similarity_threshold: float, limit: int
) -> tuple[Project, ...]:
    qualifying = [project for project in candidates if project.score >= similarity_threshold]
    qualifying.sort(
        key=lambda project: (
            -project.score,
            _depth(project.nominal_root_path),
            project.nominal_root_path,
        )
    )
    picked: list[Project] = []
    for project in qualifying:
        if len(picked) >= limit:
            break
        if any(_overlaps(project.nominal_root_path, other.nominal_root_path) for other in picked):
            continue
        picked.append(project)
    return tuple(picked)


def analyze(
    template: Template,
    entries: Iterable[Entry],
    student_root_path: str = "",
    projects_per_student: int = 1,
    similarity_threshold: float = 80,
    root_id: str | None = None,
) -> list[SubmissionGroup]:
    """Find, per submitter folder, the projects whose layout matches ``template``.

    Args:
        template: Expected tree; validated before any entry is looked at.
        entries: Flattened archive entries.
        student_root_path: Folder holding one subfolder per submitter; empty
            or unknown paths scan from the archive root.
        projects_per_student: Maximum number of projects kept per group.
        similarity_threshold: Minimum score (0-100) for a project to be kept.
        root_id: Template root to anchor on, defaults to the first root.

    Returns:
        Groups sorted by name, the root-level group ``""`` first when present.

    Raises:
        TemplateInvalid: If the template is structurally broken.
    """
    template.validate()
    index = EntryIndex.build(entries)
    matcher = TemplateMatcher(template, index, root_id)
    scope = _resolve_scope(index, student_root_path)
    limit = max(projects_per_student, 0)

    groups: list[SubmissionGroup] = []
    claimed: set[str] = set()

    root_project = matcher.evaluate("", scope)
    if (
        limit
        and root_project.score >= similarity_threshold
        and matcher.is_anchored(root_project)
    ):
        groups.append(
            SubmissionGroup(name="", projects=(root_project,), expected_project_count=limit)
        )
        claimed = {match.found_path for match in root_project.matches if match.found_path}

    for entry in index.children.get(scope, ()):
        if not entry.is_dir:
            continue
        if any(_is_within(path, entry.path) for path in claimed):
            continue
        group_name = entry.name
        candidates = (
            matcher.evaluate(group_name, directory)
            for directory in index.directories_under(entry.path)
        )
        groups.append(
            SubmissionGroup(
                name=group_name,
                projects=_pick_projects(candidates, similarity_threshold, limit),
                expected_project_count=limit,
            )
        )

    groups.sort(key=lambda group: group.name)
    logger.info(
        "Analyzed %d group(s), %d project(s) detected",
        len(groups),
        sum(len(group.projects) for group in groups),
    )
    return groups


def analyze_roots(
    template: Template,
    entries: Iterable[Entry],
    student_root_path: str = "",
    projects_per_student: int = 1,
    similarity_threshold: float = 80,
) -> list[RootAnalysis]:
    """Run ``analyze`` once per template root node."""
    template.validate()
    entries = list(entries)
    return [
        RootAnalysis(
            root_id=root_id,
            root_name=template.nodes[root_id].name,
            groups=tuple(
                analyze(
                    template,
                    entries,
                    student_root_path=student_root_path,
                    projects_per_student=projects_per_student,
                    similarity_threshold=similarity_threshold,
                    root_id=root_id,
                )
            ),
        )
        for root_id in template.root_ids
    ]


async def analyze_with_reader(
    template: Template,
    reader: ArchiveReader,
    student_root_path: str = "",
    projects_per_student: int = 1,
    similarity_threshold: float = 80,
) -> list[SubmissionGroup]:
    """Validate the template, list the reader's entries, then ``analyze`` them
    in a worker thread."""
    template.validate()
    entries = await reader.list_entries()
    return await asyncio.to_thread(
        analyze,
        template,
        entries,
        student_root_path=student_root_path,
        projects_per_student=projects_per_student,
        similarity_threshold=similarity_threshold,
    )
