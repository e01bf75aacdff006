"""Runtime settings read from the environment.

A ``.env`` file in the working directory is loaded on import. Every getter
reads the environment at call time so tests can override values with
``monkeypatch.setenv``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MAX_NESTING_DEPTH = 16
DEFAULT_PROGRESS_INTERVAL = 5
DEFAULT_SIMILARITY_THRESHOLD = 80
DEFAULT_OUTPUT_NAME = "standardized.zip"


def _get_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default
    return max(value, minimum)


def get_max_nesting_depth() -> int:
    """Maximum number of archives that may be nested inside each other."""
    return _get_int("ZIPSTD_MAX_NESTING_DEPTH", DEFAULT_MAX_NESTING_DEPTH, minimum=1)


def get_progress_interval() -> int:
    """Number of copied files between two progress callbacks."""
    return _get_int("ZIPSTD_PROGRESS_INTERVAL", DEFAULT_PROGRESS_INTERVAL, minimum=1)


def get_default_threshold() -> int:
    return _get_int("ZIPSTD_DEFAULT_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD)


def get_output_root() -> Path:
    """Return the directory where rebuilt archives are stored."""
    env_root = os.getenv("ZIPSTD_OUTPUT_DIR")
    if env_root:
        return Path(env_root).expanduser().resolve()

    project_root = Path(__file__).resolve().parents[2]
    return project_root / ".zipstd_outputs"


DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8000


def get_api_host() -> str:
    return os.getenv("ZIPSTD_API_HOST") or DEFAULT_API_HOST


def get_api_port() -> int:
    return _get_int("ZIPSTD_API_PORT", DEFAULT_API_PORT, minimum=1)


def get_api_reload() -> bool:
    """Auto-reload the API server on code changes; off unless ``ZIPSTD_API_RELOAD`` is truthy."""
    return os.getenv("ZIPSTD_API_RELOAD", "").strip().lower() in {"1", "true", "yes", "on"}


def get_workflow_engine_url() -> str | None:
    url = os.getenv("ZIPSTD_WORKFLOW_URL")
    return url.rstrip("/") if url else None


def configure_logging() -> None:
    """Set up root logging from ``ZIPSTD_LOG_LEVEL`` (default INFO)."""
    level_name = os.getenv("ZIPSTD_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
