"""Results produced by the template matcher."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum


class MatchStatus(StrEnum):
    FOUND = "found"
    MISSING = "missing"
    # Reserved for fractional scoring; the matcher only emits FOUND and MISSING.
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of matching one template node under a project root."""

    template_node_id: str
    found_path: str
    score: int
    status: MatchStatus


@dataclass(frozen=True, slots=True)
class Project:
    """A candidate project detected inside a submission group.

    Attributes:
        project_id: Stable identifier derived from the group and the root path.
        nominal_root_path: Directory the match pass believes bounds the project.
        score: Similarity with the template, 0-100.
        matched_node_count: Number of template nodes found.
        total_node_count: Number of template nodes scored.
        matches: Per-node results, in template order.
        suggested_new_path: Name proposed by the analysis.
        new_path: Output name, editable by the user through ``with_new_path``.
    """

    project_id: str
    nominal_root_path: str
    score: int
    matched_node_count: int
    total_node_count: int
    matches: tuple[MatchResult, ...] = ()
    suggested_new_path: str = ""
    new_path: str = ""

    @property
    def is_renamed(self) -> bool:
        return self.new_path != self.suggested_new_path

    def with_new_path(self, new_path: str) -> Project:
        return replace(self, new_path=new_path)


@dataclass(frozen=True, slots=True)
class SubmissionGroup:
    """Projects found under one top-level submitter folder.

    ``name`` is empty for a project found directly at the scan root.
    """

    name: str
    projects: tuple[Project, ...] = ()
    expected_project_count: int | None = None

    @property
    def overall_score(self) -> int:
        return max((project.score for project in self.projects), default=0)

    @property
    def missing_project_count(self) -> int:
        if self.expected_project_count is None:
            return 0
        return max(self.expected_project_count - len(self.projects), 0)


@dataclass(frozen=True, slots=True)
class RootAnalysis:
    """Groups detected for one root node of a multi-root template."""

    root_id: str
    root_name: str
    groups: tuple[SubmissionGroup, ...] = field(default_factory=tuple)


def rename_project(
    groups: tuple[SubmissionGroup, ...] | list[SubmissionGroup],
    project_id: str,
    new_path: str,
) -> tuple[SubmissionGroup, ...]:
    """Return new groups where ``project_id`` carries ``new_path``.

    The given groups are left untouched; unchanged groups and projects are
    shared with the result.

    Raises:
        KeyError: If no project has the given id.
    """
    renamed = False
    result: list[SubmissionGroup] = []
    for group in groups:
        if not any(project.project_id == project_id for project in group.projects):
            result.append(group)
            continue
        projects = tuple(
            project.with_new_path(new_path) if project.project_id == project_id else project
            for project in group.projects
        )
        result.append(replace(group, projects=projects))
        renamed = True
    if not renamed:
        raise KeyError(project_id)
    return tuple(result)
