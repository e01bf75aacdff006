"""Liveness route, probing the job database on the way."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from zip_standardizer.data.db import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict[str, str]:
    """Report ``healthy`` while rebuild jobs can be recorded, ``degraded`` otherwise."""
    try:
        with get_session() as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Job database unreachable", exc_info=True)
        return {"status": "degraded", "database": "unavailable"}
    return {"status": "healthy", "database": "ok"}
