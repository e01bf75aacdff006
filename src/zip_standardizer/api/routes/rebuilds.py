"""Rebuild job routes for the API."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import TypeAdapter, ValidationError

from zip_standardizer.api.schemas.analysis import RebuildJobSummary, SubmissionGroupSchema
from zip_standardizer.config import DEFAULT_OUTPUT_NAME
from zip_standardizer.data.models import RebuildJob, RebuildStatus
from zip_standardizer.services.jobs import get_job, get_runner

router = APIRouter(prefix="/rebuilds", tags=["rebuilds"])

_groups_adapter = TypeAdapter(list[SubmissionGroupSchema])


def _get_job_or_404(job_id: int) -> RebuildJob:
    job = get_job(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Rebuild job not found.",
        )
    return job


@router.post("", response_model=RebuildJobSummary, status_code=status.HTTP_202_ACCEPTED)
async def start_rebuild(
    file: Annotated[UploadFile, File(description="The analyzed ZIP archive")],
    groups: Annotated[str, Form(description="Analysis groups as JSON")],
    output_name: Annotated[str, Form()] = DEFAULT_OUTPUT_NAME,
) -> RebuildJobSummary:
    try:
        parsed = _groups_adapter.validate_json(groups)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid groups payload: {exc.errors()}",
        ) from exc

    output_name = Path(output_name).name or DEFAULT_OUTPUT_NAME
    if not output_name.lower().endswith(".zip"):
        output_name = f"{output_name}.zip"

    job_id = get_runner().submit(
        source_bytes=await file.read(),
        source_name=Path(file.filename or "upload.zip").name,
        groups=[group.to_model() for group in parsed],
        output_name=output_name,
    )
    return RebuildJobSummary.model_validate(_get_job_or_404(job_id))


@router.get("/{job_id}", response_model=RebuildJobSummary)
def get_rebuild(job_id: int) -> RebuildJobSummary:
    return RebuildJobSummary.model_validate(_get_job_or_404(job_id))


@router.post("/{job_id}/cancel", response_model=RebuildJobSummary)
def cancel_rebuild(job_id: int) -> RebuildJobSummary:
    job = _get_job_or_404(job_id)
    if not get_runner().cancel(job_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Rebuild job is already {job.status}.",
        )
    return RebuildJobSummary.model_validate(_get_job_or_404(job_id))


@router.get("/{job_id}/download")
def download_rebuild(job_id: int) -> FileResponse:
    job = _get_job_or_404(job_id)
    if job.status != RebuildStatus.COMPLETED or not job.output_path:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Rebuild job is {job.status}.",
        )
    return FileResponse(job.output_path, media_type="application/zip", filename=job.output_name)
