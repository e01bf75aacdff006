"""Run archive rebuilds in a background worker with persisted progress."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from zip_standardizer.config import get_output_root
from zip_standardizer.data.db import get_session
from zip_standardizer.data.models import RebuildJob, RebuildStatus
from zip_standardizer.models.analysis import SubmissionGroup
from zip_standardizer.models.errors import Cancelled, StandardizerError
from zip_standardizer.services.rebuilder import rebuild

logger = logging.getLogger(__name__)


def get_output_path(job_id: int, output_name: str) -> Path:
    """Return where the archive produced by ``job_id`` is stored."""
    return get_output_root() / str(job_id) / Path(output_name).name


def get_job(job_id: int) -> RebuildJob | None:
    with get_session() as session:
        return session.get(RebuildJob, job_id)


def _update_job(job_id: int, **values: object) -> None:
    with get_session() as session:
        job = session.get(RebuildJob, job_id)
        if job is None:
            return
        for key, value in values.items():
            setattr(job, key, value)


class RebuildRunner:
    """Execute rebuilds one at a time off the caller's thread.

    Each job gets a ``threading.Event``; setting it makes the rebuilder stop
    before its next file and the job ends as ``cancelled``.
    """

    def __init__(self, max_workers: int = 1) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="rebuild")
        self._cancel_events: dict[int, threading.Event] = {}
        self._futures: dict[int, Future[None]] = {}

    def submit(
        self,
        source_bytes: bytes,
        source_name: str,
        groups: Sequence[SubmissionGroup],
        output_name: str,
    ) -> int:
        """Record a pending job and schedule it. Returns the job id."""
        with get_session() as session:
            job = RebuildJob(
                source_name=source_name,
                output_name=output_name,
                status=RebuildStatus.PENDING,
            )
            session.add(job)
            session.flush()
            job_id = job.id

        cancel_event = threading.Event()
        self._cancel_events[job_id] = cancel_event
        future = self._executor.submit(
            self._run, job_id, source_bytes, tuple(groups), output_name, cancel_event
        )
        self._futures[job_id] = future
        future.add_done_callback(lambda _: self._forget(job_id))
        return job_id

    def _forget(self, job_id: int) -> None:
        self._cancel_events.pop(job_id, None)
        self._futures.pop(job_id, None)

    def cancel(self, job_id: int) -> bool:
        """Request cancellation; returns False for unknown or finished jobs."""
        event = self._cancel_events.get(job_id)
        future = self._futures.get(job_id)
        if event is None or future is None or future.done():
            return False
        event.set()
        return True

    def wait(self, job_id: int, timeout: float | None = None) -> None:
        """Block until ``job_id`` has finished; finished jobs return at once."""
        future = self._futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)

    def shutdown(self) -> None:
        for event in list(self._cancel_events.values()):
            event.set()
        self._executor.shutdown(wait=True)

    def _run(
        self,
        job_id: int,
        source_bytes: bytes,
        groups: tuple[SubmissionGroup, ...],
        output_name: str,
        cancel_event: threading.Event,
    ) -> None:
        _update_job(job_id, status=RebuildStatus.RUNNING)

        def _on_progress(ratio: float, current_path: str | None) -> None:
            _update_job(job_id, progress=ratio, current_path=current_path)

        try:
            data = rebuild(
                source_bytes,
                groups,
                output_name=output_name,
                on_progress=_on_progress,
                is_cancelled=cancel_event.is_set,
            )
            output_path = get_output_path(job_id, output_name)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(data)
        except Cancelled:
            logger.info("Rebuild job %d cancelled", job_id)
            _update_job(job_id, status=RebuildStatus.CANCELLED)
            return
        except StandardizerError as exc:
            logger.warning("Rebuild job %d failed: %s", job_id, exc)
            _update_job(job_id, status=RebuildStatus.FAILED, error=str(exc))
            return
        except OSError as exc:
            logger.warning("Rebuild job %d could not store its archive: %s", job_id, exc)
            _update_job(job_id, status=RebuildStatus.FAILED, error=str(exc))
            return
        except Exception as exc:
            logger.exception("Rebuild job %d crashed", job_id)
            _update_job(job_id, status=RebuildStatus.FAILED, error=str(exc))
            return

        _update_job(
            job_id,
            status=RebuildStatus.COMPLETED,
            progress=1.0,
            output_path=str(output_path),
        )


_runner: RebuildRunner | None = None


def get_runner() -> RebuildRunner:
    global _runner
    if _runner is None:
        _runner = RebuildRunner()
    return _runner


def shutdown_runner() -> None:
    """Stop the shared runner; the next ``get_runner`` call starts a new one."""
    global _runner
    if _runner is not None:
        _runner.shutdown()
        _runner = None
