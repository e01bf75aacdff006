from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from zip_standardizer.models import WorkflowEngineError
from zip_standardizer.services.workflow_client import HttpWorkflowEngine

WORKFLOW = {"operations": [{"id": "op1", "type": "renameFolder"}]}


def _response(payload: object) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    return response


def test_missing_url_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ZIPSTD_WORKFLOW_URL", raising=False)

    with pytest.raises(WorkflowEngineError):
        HttpWorkflowEngine()


def test_url_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZIPSTD_WORKFLOW_URL", "http://engine.local/api/")

    assert HttpWorkflowEngine().base_url == "http://engine.local/api"


def test_prepare_workspace_parses_summary() -> None:
    payload = {
        "workspaceId": "ws-1",
        "mode": "zip",
        "sourcePath": "/tmp/submissions.zip",
        "extractedPath": "/tmp/ws-1",
        "subFolders": ["StudentA", "StudentB"],
    }

    with patch("requests.post", return_value=_response(payload)) as mock_post:
        summary = HttpWorkflowEngine("http://engine.local", timeout=5).prepare_workspace(
            "/tmp/submissions.zip"
        )

    assert summary.workspace_id == "ws-1"
    assert summary.sub_folders == ["StudentA", "StudentB"]
    args, kwargs = mock_post.call_args
    assert args[0] == "http://engine.local/workspaces"
    assert kwargs["json"] == {"path": "/tmp/submissions.zip"}
    assert kwargs["timeout"] == 5


def test_validate_workflow_returns_messages() -> None:
    payload = [
        {"operationId": "op1", "level": "warning", "message": "Folder missing", "folders": ["B"]},
    ]

    with patch("requests.post", return_value=_response(payload)) as mock_post:
        messages = HttpWorkflowEngine("http://engine.local").validate_workflow("ws-1", WORKFLOW)

    assert messages[0].operation_id == "op1"
    assert messages[0].folders == ["B"]
    args, kwargs = mock_post.call_args
    assert args[0] == "http://engine.local/workspaces/ws-1/validate"
    assert kwargs["json"] == {"workflow": WORKFLOW}


def test_execute_workflow_returns_result() -> None:
    payload = {
        "success": True,
        "operationsRun": 1,
        "logFilePath": "/tmp/ws-1/log.txt",
        "logEntries": [
            {
                "timestamp": "2024-01-01T00:00:00Z",
                "operationId": "op1",
                "operationLabel": "Rename",
                "message": "done",
                "level": "info",
            }
        ],
        "outputArchivePath": "/tmp/out.zip",
    }

    with patch("requests.post", return_value=_response(payload)):
        result = HttpWorkflowEngine("http://engine.local").execute_workflow("ws-1", WORKFLOW)

    assert result.success
    assert result.operations_run == 1
    assert result.log_entries[0].operation_label == "Rename"
    assert result.output_archive_path == "/tmp/out.zip"


def test_http_error_is_wrapped() -> None:
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")

    with patch("requests.post", return_value=response):
        with pytest.raises(WorkflowEngineError):
            HttpWorkflowEngine("http://engine.local").prepare_workspace("/tmp/x")


def test_timeout_is_wrapped() -> None:
    with patch("requests.post", side_effect=requests.exceptions.Timeout):
        with pytest.raises(WorkflowEngineError):
            HttpWorkflowEngine("http://engine.local").execute_workflow("ws-1", WORKFLOW)


def test_unexpected_payload_is_rejected() -> None:
    with patch("requests.post", return_value=_response({"unexpected": True})):
        with pytest.raises(WorkflowEngineError):
            HttpWorkflowEngine("http://engine.local").execute_workflow("ws-1", WORKFLOW)
