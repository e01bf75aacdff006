"""Data models and type definitions"""

from zip_standardizer.models.analysis import (
    MatchResult,
    MatchStatus,
    Project,
    RootAnalysis,
    SubmissionGroup,
    rename_project,
)
from zip_standardizer.models.archive import Entry, VirtualEntry
from zip_standardizer.models.errors import (
    ArchiveCorrupt,
    ArchiveTooDeep,
    Cancelled,
    EntryReadError,
    StandardizerError,
    TemplateInvalid,
    WorkflowEngineError,
)
from zip_standardizer.models.template import NamePattern, NodeKind, Template, TemplateNode

__all__ = [
    "ArchiveCorrupt",
    "ArchiveTooDeep",
    "Cancelled",
    "Entry",
    "EntryReadError",
    "MatchResult",
    "MatchStatus",
    "NamePattern",
    "NodeKind",
    "Project",
    "RootAnalysis",
    "StandardizerError",
    "SubmissionGroup",
    "Template",
    "TemplateInvalid",
    "TemplateNode",
    "VirtualEntry",
    "WorkflowEngineError",
    "rename_project",
]
