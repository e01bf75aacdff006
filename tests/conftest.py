from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from zip_standardizer.data import db as app_db
from zip_standardizer.models import NodeKind, Template
from zip_standardizer.services.jobs import shutdown_runner


@pytest.fixture
def gradle_template() -> Template:
    template = Template(name="Gradle")
    template.add_node("Racine", NodeKind.DIRECTORY, node_id="root")
    template.add_node("settings.gradle*", NodeKind.FILE, parent_id="root", node_id="settings")
    template.add_node("build.gradle*", NodeKind.FILE, parent_id="root", node_id="build")
    template.add_node("src", NodeKind.DIRECTORY, parent_id="root", node_id="src")
    template.add_node("main", NodeKind.DIRECTORY, parent_id="src", node_id="srcMain")
    template.add_node("*", NodeKind.DIRECTORY, parent_id="srcMain", node_id="srcMainAny")
    return template


@pytest.fixture
def dotnet_template() -> Template:
    template = Template(name=".NET")
    template.add_node("Racine", NodeKind.DIRECTORY, node_id="root")
    template.add_node("*.sln", NodeKind.FILE, parent_id="root", node_id="solution")
    template.add_node("*", NodeKind.DIRECTORY, parent_id="root", node_id="projectDir")
    template.add_node("*.csproj", NodeKind.FILE, parent_id="projectDir", node_id="csproj")
    template.add_node("Program.cs", NodeKind.FILE, parent_id="projectDir", node_id="program")
    return template


@pytest.fixture
def api_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Use a temporary SQLite DB and output folder for job and API tests."""
    db_path = tmp_path / "api.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("ZIPSTD_OUTPUT_DIR", (tmp_path / "outputs").as_posix())
    app_db.reset_engine()
    app_db.init_db()
    yield
    shutdown_runner()
    app_db.reset_engine()


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically add api_db fixture to tests in API test files."""
    for item in items:
        test_file_path = Path(str(item.fspath))
        if "api" in test_file_path.stem.lower():
            item.add_marker(pytest.mark.usefixtures("api_db"))
