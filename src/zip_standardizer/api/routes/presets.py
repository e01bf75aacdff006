"""Built-in template routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from zip_standardizer.api.schemas.templates import TemplatePayload
from zip_standardizer.services.presets import build_preset_template, list_presets

router = APIRouter(prefix="/presets", tags=["presets"])


@router.get("")
def get_presets() -> list[str]:
    return list_presets()


@router.get("/{key}", response_model=TemplatePayload, response_model_by_alias=True)
def get_preset(key: str) -> TemplatePayload:
    try:
        template = build_preset_template(key)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown preset {key!r}.",
        ) from exc
    return TemplatePayload.from_template(template)
