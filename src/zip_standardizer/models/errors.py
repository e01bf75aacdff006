"""Exceptions raised by the analysis and rebuild pipeline."""

from __future__ import annotations


class StandardizerError(Exception):
    """Base class for all errors raised by zip_standardizer."""


class ArchiveCorrupt(StandardizerError):
    """Raised when the top-level archive cannot be read as a ZIP file."""


class ArchiveTooDeep(StandardizerError):
    """Raised when nested archives exceed the configured nesting depth."""

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(f"Nested archive {path!r} exceeds the maximum depth of {limit}")
        self.path = path
        self.limit = limit


class TemplateInvalid(StandardizerError):
    """Raised when a template has no roots or contains broken node references."""


class Cancelled(StandardizerError):
    """Raised when the caller cancels a rebuild in progress."""

    def __init__(self) -> None:
        super().__init__("CANCELLED")


class EntryReadError(StandardizerError):
    """Raised when an archive member cannot be read while rebuilding."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Unable to read archive entry {path!r}")
        self.path = path


class WorkflowEngineError(StandardizerError):
    """Raised when the remote workflow engine cannot be reached or rejects a call."""
