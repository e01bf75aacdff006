"""Display and formatting utilities"""

from __future__ import annotations

from collections.abc import Sequence

from zip_standardizer.models.analysis import MatchStatus, SubmissionGroup


def format_bytes(size: float) -> str:
    """Format bytes into human-readable string (e.g., "1.5 KB", "2.3 MB")."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


def display_groups(groups: Sequence[SubmissionGroup], verbose: bool = False) -> None:
    """Print detected projects per submitter folder.

    Args:
        groups: Analysis result.
        verbose: Also list missing template nodes for every project.
    """
    print(f"\n✅ Analyzed {len(groups)} submission folder(s)")
    print("-" * 60)

    for group in groups:
        label = group.name or "(archive root)"
        expected = group.expected_project_count or 0
        print(f"📁 {label}  [{len(group.projects)}/{expected} project(s)]")
        if not group.projects:
            print("   ⚠️  No matching project found")
            continue
        for project in group.projects:
            root = project.nominal_root_path or "."
            print(
                f"   • {root} → {project.new_path}  "
                f"{project.score}% ({project.matched_node_count}/{project.total_node_count})"
            )
            if verbose:
                for match in project.matches:
                    if match.status is MatchStatus.MISSING:
                        print(f"       missing: {match.template_node_id}")
