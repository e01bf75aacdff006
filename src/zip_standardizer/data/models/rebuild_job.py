"""ORM model tracking archive rebuilds run in the background."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from zip_standardizer.data.db import Base


class RebuildStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RebuildJob(Base):
    """Persisted state of one rebuild.

    Attributes:
        id: Auto-incrementing primary key.
        source_name: Name of the analyzed archive.
        output_name: Name given to the produced archive.
        status: One of ``RebuildStatus``.
        progress: Ratio of copied files, 0.0-1.0.
        current_path: Last destination path reported by the rebuilder.
        output_path: Where the produced archive was stored, once completed.
        error: Failure message for failed jobs.
    """

    __tablename__ = "rebuild_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_name: Mapped[str] = mapped_column(String, nullable=False)
    output_name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=RebuildStatus.PENDING)
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    current_path: Mapped[str | None] = mapped_column(String, nullable=True)
    output_path: Mapped[str | None] = mapped_column(String, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
