"""Client side of the external workflow engine.

The engine prepares a workspace from a path, validates a declarative list of
operations against it and executes them. Only its interface lives here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Literal

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from zip_standardizer.config import get_workflow_engine_url
from zip_standardizer.models.errors import WorkflowEngineError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class _EngineModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WorkspaceSummary(_EngineModel):
    workspace_id: str = Field(alias="workspaceId")
    mode: Literal["zip", "directory"]
    source_path: str = Field(alias="sourcePath")
    extracted_path: str | None = Field(default=None, alias="extractedPath")
    sub_folders: list[str] = Field(default_factory=list, alias="subFolders")


class ValidationMessage(_EngineModel):
    operation_id: str = Field(alias="operationId")
    level: Literal["info", "warning", "error"]
    message: str
    details: str | None = None
    folders: list[str] = Field(default_factory=list)


class ExecutionLogEntry(_EngineModel):
    timestamp: str
    operation_id: str = Field(alias="operationId")
    operation_label: str = Field(alias="operationLabel")
    message: str
    level: Literal["info", "warning", "error"]


class ExecutionResult(_EngineModel):
    success: bool
    operations_run: int = Field(alias="operationsRun")
    log_file_path: str = Field(default="", alias="logFilePath")
    log_entries: list[ExecutionLogEntry] = Field(default_factory=list, alias="logEntries")
    warnings: list[ValidationMessage] = Field(default_factory=list)
    errors: list[ValidationMessage] = Field(default_factory=list)
    output_archive_path: str | None = Field(default=None, alias="outputArchivePath")


class WorkflowEngine(ABC):
    """Operations offered by a workflow engine."""

    @abstractmethod
    def prepare_workspace(self, path: str) -> WorkspaceSummary:
        """Open ``path`` (archive or directory) as a workspace."""

    @abstractmethod
    def validate_workflow(
        self, workspace_id: str, workflow: dict[str, Any]
    ) -> list[ValidationMessage]:
        """Check ``workflow`` against the workspace without running it."""

    @abstractmethod
    def execute_workflow(self, workspace_id: str, workflow: dict[str, Any]) -> ExecutionResult:
        """Run ``workflow`` on every folder of the workspace."""


class HttpWorkflowEngine(WorkflowEngine):
    """Workflow engine reached over HTTP."""

    def __init__(self, base_url: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        base_url = base_url or get_workflow_engine_url()
        if not base_url:
            raise WorkflowEngineError("Missing ZIPSTD_WORKFLOW_URL environment variable")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{endpoint}"
        try:
            response = requests.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            logger.warning("Workflow engine call %s failed: %s", endpoint, exc)
            raise WorkflowEngineError(f"Workflow engine call {endpoint} failed: {exc}") from exc
        except ValueError as exc:
            raise WorkflowEngineError(f"Workflow engine returned invalid JSON for {endpoint}") from exc

    def prepare_workspace(self, path: str) -> WorkspaceSummary:
        data = self._post("workspaces", {"path": path})
        try:
            return WorkspaceSummary.model_validate(data)
        except ValidationError as exc:
            raise WorkflowEngineError("Unexpected workspace summary") from exc

    def validate_workflow(
        self, workspace_id: str, workflow: dict[str, Any]
    ) -> list[ValidationMessage]:
        data = self._post(f"workspaces/{workspace_id}/validate", {"workflow": workflow})
        try:
            return [ValidationMessage.model_validate(item) for item in data]
        except (TypeError, ValidationError) as exc:
            raise WorkflowEngineError("Unexpected validation messages") from exc

    def execute_workflow(self, workspace_id: str, workflow: dict[str, Any]) -> ExecutionResult:
        data = self._post(f"workspaces/{workspace_id}/execute", {"workflow": workflow})
        try:
            return ExecutionResult.model_validate(data)
        except ValidationError as exc:
            raise WorkflowEngineError("Unexpected execution result") from exc
