"""Tests for the analyze endpoint."""

from __future__ import annotations

import io
import json
from zipfile import ZIP_DEFLATED, ZipFile

from fastapi.testclient import TestClient
from httpx import Response

from zip_standardizer.api.main import app

GRADLE_FILES = (
    "settings.gradle",
    "build.gradle",
    "gradle.properties",
    "src/main/java/App.java",
    "src/main/resources/app.properties",
    "src/test/java/AppTest.java",
    "src/test/resources/test.properties",
)

POM_TEMPLATE = {
    "name": "Maven light",
    "nodes": {
        "root": {"id": "root", "name": "Racine", "type": "directory", "children": ["pom"]},
        "pom": {"id": "pom", "name": "pom.xml", "type": "file", "parent": "root"},
    },
    "rootNodes": ["root"],
}


def _create_zip(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with ZipFile(buffer, mode="w", compression=ZIP_DEFLATED) as archive:
        for relative_path, data in entries:
            archive.writestr(relative_path, data)
    return buffer.getvalue()


def _submissions() -> bytes:
    student_a = _create_zip([(f"Intra/{path}", b"x") for path in GRADLE_FILES])
    return _create_zip(
        [
            ("1030/StudentA.zip", student_a),
            ("1030/StudentB/readme.md", b"nothing here"),
            ("1030/StudentC/pom.xml", b"<project />"),
        ]
    )


def _post(client: TestClient, data: dict[str, str], payload: bytes | None = None) -> Response:
    return client.post(
        "/api/analyze",
        files={"file": ("submissions.zip", payload or _submissions(), "application/zip")},
        data=data,
    )


def test_analyze_with_preset() -> None:
    client = TestClient(app)

    response = _post(client, {"preset": "gradle", "student_root_path": "1030"})

    assert response.status_code == 200
    body = response.json()
    assert body["filename"] == "submissions.zip"
    assert body["student_root_path"] == "1030"
    groups = {group["name"]: group for group in body["groups"]}
    assert list(groups) == ["StudentA", "StudentB", "StudentC"]
    project = groups["StudentA"]["projects"][0]
    assert project["nominal_root_path"] == "1030/StudentA/Intra"
    assert project["score"] == 100
    assert project["new_path"] == "StudentA_Intra"
    assert project["is_renamed"] is False
    assert all(match["status"] == "found" for match in project["matches"])
    assert groups["StudentA"]["overall_score"] == 100
    assert groups["StudentB"]["projects"] == []


def test_analyze_with_custom_template() -> None:
    client = TestClient(app)

    response = _post(
        client,
        {"template": json.dumps(POM_TEMPLATE), "student_root_path": "1030"},
    )

    assert response.status_code == 200
    groups = {group["name"]: group for group in response.json()["groups"]}
    assert groups["StudentC"]["projects"][0]["nominal_root_path"] == "1030/StudentC"
    assert groups["StudentA"]["projects"] == []


def test_analyze_threshold_and_project_count() -> None:
    client = TestClient(app)

    response = _post(
        client,
        {
            "template": json.dumps(POM_TEMPLATE),
            "student_root_path": "1030",
            "similarity_threshold": "0",
            "projects_per_student": "2",
        },
    )

    assert response.status_code == 200
    groups = {group["name"]: group for group in response.json()["groups"]}
    assert groups["StudentB"]["expected_project_count"] == 2
    assert groups["StudentB"]["projects"][0]["score"] == 0


def test_analyze_requires_template_or_preset() -> None:
    client = TestClient(app)

    response = _post(client, {})

    assert response.status_code == 400


def test_analyze_unknown_preset_returns_404() -> None:
    client = TestClient(app)

    response = _post(client, {"preset": "cobol"})

    assert response.status_code == 404


def test_analyze_malformed_template_returns_422() -> None:
    client = TestClient(app)

    response = _post(client, {"template": "{not json"})

    assert response.status_code == 422


def test_analyze_broken_template_returns_400() -> None:
    client = TestClient(app)
    template = {**POM_TEMPLATE, "rootNodes": ["ghost"]}

    response = _post(client, {"template": json.dumps(template)})

    assert response.status_code == 400
    assert "ghost" in response.json()["detail"]


def test_analyze_corrupt_archive_returns_400() -> None:
    client = TestClient(app)

    response = _post(client, {"preset": "gradle"}, payload=b"not a zip")

    assert response.status_code == 400


def test_analyze_rejects_zero_projects_per_student() -> None:
    client = TestClient(app)

    response = _post(client, {"preset": "gradle", "projects_per_student": "0"})

    assert response.status_code == 422
