from __future__ import annotations

import io
import threading
import time
from collections.abc import Iterator
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

import pytest

from zip_standardizer.data.models import RebuildStatus
from zip_standardizer.models import Cancelled, EntryReadError, Project, SubmissionGroup
from zip_standardizer.services import jobs
from zip_standardizer.services.jobs import RebuildRunner, get_job, get_output_path

pytestmark = pytest.mark.usefixtures("api_db")


def _create_zip(entries: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with ZipFile(buffer, mode="w", compression=ZIP_DEFLATED) as archive:
        for relative_path, data in entries:
            archive.writestr(relative_path, data)
    return buffer.getvalue()


GROUPS = [
    SubmissionGroup(
        name="StudentA",
        projects=(
            Project(
                project_id="StudentA::StudentA/app",
                nominal_root_path="StudentA/app",
                score=100,
                matched_node_count=1,
                total_node_count=1,
                suggested_new_path="StudentA_app",
                new_path="StudentA_app",
            ),
        ),
    )
]


@pytest.fixture
def runner() -> Iterator[RebuildRunner]:
    runner = RebuildRunner()
    yield runner
    runner.shutdown()


def test_completed_job_stores_archive(runner: RebuildRunner, tmp_path: Path) -> None:
    source = _create_zip([("StudentA/app/main.py", b"print('hi')")])

    job_id = runner.submit(source, "submissions.zip", GROUPS, "out.zip")
    runner.wait(job_id, timeout=10)

    job = get_job(job_id)
    assert job is not None
    assert job.status == RebuildStatus.COMPLETED
    assert job.progress == 1.0
    assert job.source_name == "submissions.zip"
    assert job.output_path == str(get_output_path(job_id, "out.zip"))
    assert Path(job.output_path).is_relative_to((tmp_path / "outputs").resolve())
    with ZipFile(job.output_path) as archive:
        assert archive.namelist() == ["StudentA_app/main.py"]


def test_invalid_source_marks_job_failed(runner: RebuildRunner) -> None:
    job_id = runner.submit(b"not a zip", "broken.zip", GROUPS, "out.zip")
    runner.wait(job_id, timeout=10)

    job = get_job(job_id)
    assert job is not None
    assert job.status == RebuildStatus.FAILED
    assert "not a valid ZIP" in (job.error or "")
    assert job.output_path is None


def test_read_error_marks_job_failed(
    runner: RebuildRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _failing_rebuild(*args: object, **kwargs: object) -> bytes:
        raise EntryReadError("StudentA/app/main.py")

    monkeypatch.setattr(jobs, "rebuild", _failing_rebuild)

    job_id = runner.submit(b"", "source.zip", GROUPS, "out.zip")
    runner.wait(job_id, timeout=10)

    job = get_job(job_id)
    assert job is not None
    assert job.status == RebuildStatus.FAILED
    assert "StudentA/app/main.py" in (job.error or "")


def test_running_job_can_be_cancelled(
    runner: RebuildRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    started = threading.Event()

    def _slow_rebuild(*args: object, is_cancelled, **kwargs: object) -> bytes:
        started.set()
        while not is_cancelled():
            time.sleep(0.01)
        raise Cancelled()

    monkeypatch.setattr(jobs, "rebuild", _slow_rebuild)

    job_id = runner.submit(b"", "source.zip", GROUPS, "out.zip")
    assert started.wait(timeout=10)
    assert runner.cancel(job_id)
    runner.wait(job_id, timeout=10)

    job = get_job(job_id)
    assert job is not None
    assert job.status == RebuildStatus.CANCELLED
    assert not runner.cancel(job_id)


def test_cancel_unknown_job_returns_false(runner: RebuildRunner) -> None:
    assert not runner.cancel(12345)


def test_progress_is_recorded(runner: RebuildRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[float] = []

    def _fake_rebuild(*args: object, on_progress, **kwargs: object) -> bytes:
        on_progress(0.5, "StudentA_app/main.py")
        job = get_job(1)
        seen.append(job.progress if job else -1.0)
        return _create_zip([("StudentA_app/main.py", b"")])

    monkeypatch.setattr(jobs, "rebuild", _fake_rebuild)

    job_id = runner.submit(b"", "source.zip", GROUPS, "out.zip")
    runner.wait(job_id, timeout=10)

    assert job_id == 1
    assert seen == [0.5]
    job = get_job(job_id)
    assert job is not None
    assert job.current_path == "StudentA_app/main.py"
    assert job.progress == 1.0


def test_unwritable_output_dir_marks_job_failed(
    runner: RebuildRunner, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied", encoding="utf-8")
    monkeypatch.setenv("ZIPSTD_OUTPUT_DIR", blocker.as_posix())
    source = _create_zip([("StudentA/app/main.py", b"print('hi')")])

    job_id = runner.submit(source, "submissions.zip", GROUPS, "out.zip")
    runner.wait(job_id, timeout=10)

    job = get_job(job_id)
    assert job is not None
    assert job.status == RebuildStatus.FAILED
    assert job.error
    assert job.output_path is None


def test_finished_jobs_are_forgotten(runner: RebuildRunner) -> None:
    source = _create_zip([("StudentA/app/main.py", b"print('hi')")])

    job_ids = [runner.submit(source, "submissions.zip", GROUPS, "out.zip") for _ in range(3)]
    for job_id in job_ids:
        runner.wait(job_id, timeout=10)
    runner.shutdown()

    assert runner._futures == {}
    assert runner._cancel_events == {}
    assert all(get_job(job_id).status == RebuildStatus.COMPLETED for job_id in job_ids)
