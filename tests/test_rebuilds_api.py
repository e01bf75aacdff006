"""Tests for the rebuild job endpoints."""

from __future__ import annotations

import io
import json
from zipfile import ZIP_DEFLATED, ZipFile

from fastapi.testclient import TestClient

from zip_standardizer.api.main import app
from zip_standardizer.services.jobs import get_runner

INTRA_FILES = [
    ("Intra/Intra.sln", b"solution"),
    ("Intra/Intra/Intra.csproj", b"<Project />"),
    ("Intra/Intra/Program.cs", b"class Program {}"),
]


def _create_zip(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with ZipFile(buffer, mode="w", compression=ZIP_DEFLATED) as archive:
        for relative_path, data in entries:
            archive.writestr(relative_path, data)
    return buffer.getvalue()


def _analyze(client: TestClient, archive: bytes) -> list[dict]:
    response = client.post(
        "/api/analyze",
        files={"file": ("submissions.zip", archive, "application/zip")},
        data={"preset": "dotnet", "student_root_path": "1030"},
    )
    assert response.status_code == 200
    return response.json()["groups"]


def _start(client: TestClient, archive: bytes, groups: list[dict], output_name: str) -> dict:
    response = client.post(
        "/api/rebuilds",
        files={"file": ("submissions.zip", archive, "application/zip")},
        data={"groups": json.dumps(groups), "output_name": output_name},
    )
    assert response.status_code == 202
    return response.json()


def test_rebuild_round_trip_with_renamed_project() -> None:
    client = TestClient(app)
    archive = _create_zip([("1030/StudentA.zip", _create_zip(INTRA_FILES))])
    groups = _analyze(client, archive)
    groups[0]["projects"][0]["new_path"] = "Team1/Intra"

    job = _start(client, archive, groups, "result")
    assert job["output_name"] == "result.zip"
    assert job["status"] in {"pending", "running", "completed"}
    get_runner().wait(job["id"], timeout=10)

    status_response = client.get(f"/api/rebuilds/{job['id']}")
    assert status_response.status_code == 200
    assert status_response.json()["status"] == "completed"
    assert status_response.json()["progress"] == 1.0

    download = client.get(f"/api/rebuilds/{job['id']}/download")
    assert download.status_code == 200
    assert "result.zip" in download.headers["content-disposition"]
    with ZipFile(io.BytesIO(download.content)) as output:
        assert sorted(output.namelist()) == [
            "Team1/Intra/Intra.sln",
            "Team1/Intra/Intra/Intra.csproj",
            "Team1/Intra/Intra/Program.cs",
        ]


def test_cancel_finished_job_returns_409() -> None:
    client = TestClient(app)
    archive = _create_zip([("1030/StudentA.zip", _create_zip(INTRA_FILES))])

    job = _start(client, archive, _analyze(client, archive), "out.zip")
    get_runner().wait(job["id"], timeout=10)

    response = client.post(f"/api/rebuilds/{job['id']}/cancel")
    assert response.status_code == 409


def test_failed_job_cannot_be_downloaded() -> None:
    client = TestClient(app)

    job = _start(client, b"not a zip", [], "out.zip")
    get_runner().wait(job["id"], timeout=10)

    status_response = client.get(f"/api/rebuilds/{job['id']}")
    assert status_response.json()["status"] == "failed"
    assert status_response.json()["error"]
    assert client.get(f"/api/rebuilds/{job['id']}/download").status_code == 409


def test_unknown_job_returns_404() -> None:
    client = TestClient(app)

    assert client.get("/api/rebuilds/999").status_code == 404
    assert client.post("/api/rebuilds/999/cancel").status_code == 404
    assert client.get("/api/rebuilds/999/download").status_code == 404


def test_invalid_groups_payload_returns_422() -> None:
    client = TestClient(app)

    response = client.post(
        "/api/rebuilds",
        files={"file": ("submissions.zip", b"", "application/zip")},
        data={"groups": json.dumps([{"projects": "nope"}])},
    )

    assert response.status_code == 422
