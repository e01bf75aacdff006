"""Template matching routes for the API."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from zip_standardizer.api.schemas.analysis import AnalyzeResponse, SubmissionGroupSchema
from zip_standardizer.api.schemas.templates import TemplatePayload
from zip_standardizer.config import get_default_threshold
from zip_standardizer.models.errors import ArchiveCorrupt, ArchiveTooDeep, TemplateInvalid
from zip_standardizer.models.template import Template
from zip_standardizer.services.collector import ZipBytesReader
from zip_standardizer.services.matcher import analyze_with_reader
from zip_standardizer.services.presets import build_preset_template

router = APIRouter(tags=["analysis"])


def _load_template(template: str | None, preset: str | None) -> Template:
    if template:
        try:
            return TemplatePayload.model_validate_json(template).to_template()
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid template payload: {exc.errors()}",
            ) from exc
    if preset:
        try:
            return build_preset_template(preset)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown preset {preset!r}.",
            ) from exc
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Provide either a template or a preset.",
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_archive(
    file: Annotated[UploadFile, File(description="ZIP archive holding the submissions")],
    template: Annotated[str | None, Form(description="Template as JSON")] = None,
    preset: Annotated[str | None, Form(description="Built-in template key")] = None,
    student_root_path: Annotated[str, Form()] = "",
    projects_per_student: Annotated[int, Form(ge=1)] = 1,
    similarity_threshold: Annotated[float | None, Form(ge=0, le=100)] = None,
) -> AnalyzeResponse:
    expected = _load_template(template, preset)
    filename = Path(file.filename or "upload.zip").name
    reader = ZipBytesReader(await file.read(), name=filename)
    threshold = get_default_threshold() if similarity_threshold is None else similarity_threshold

    try:
        groups = await analyze_with_reader(
            expected,
            reader,
            student_root_path=student_root_path,
            projects_per_student=projects_per_student,
            similarity_threshold=threshold,
        )
    except (ArchiveCorrupt, ArchiveTooDeep, TemplateInvalid) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return AnalyzeResponse(
        filename=filename,
        student_root_path=student_root_path,
        groups=[SubmissionGroupSchema.from_model(group) for group in groups],
    )
