"""API routes for sections placed on pages."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from pagebuilder.errors import SectionInstanceNotFoundError, UnknownTypeError, ValidationError
from pagebuilder.migration.schemas import DuplicateOptions, MigrationResult
from pagebuilder.pages.service import PageSectionService
from pagebuilder.rendering.schemas import PageRenderResult
from pagebuilder.sections.schemas import HeroVariant, RenderMode, SectionInstance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pages", tags=["pages"])

_service: PageSectionService | None = None


def init_service(service: PageSectionService) -> None:
    global _service
    _service = service


def _get_service() -> PageSectionService:
    if _service is None:
        raise HTTPException(status_code=503, detail="Page service not initialized")
    return _service


class CreateSectionRequest(BaseModel):
    type_id: str
    properties: Optional[dict[str, Any]] = Field(
        default=None,
        description="Initial properties; the type's defaults when omitted",
    )
    order: Optional[int] = None


class MigrateSectionRequest(BaseModel):
    target_variant: Optional[HeroVariant] = None
    apply: bool = False


def _get_instance(page_id: str, section_id: str) -> SectionInstance:
    try:
        instance = _get_service().get_section(section_id)
    except SectionInstanceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if instance.page_id != page_id:
        raise HTTPException(
            status_code=404,
            detail=f"Section instance '{section_id}' not found on page '{page_id}'",
        )
    return instance


@router.get("/{page_id}/sections", response_model=list[SectionInstance])
async def list_page_sections(page_id: str):
    """Sections on a page in render order."""
    return _get_service().list_sections(page_id)


@router.post("/{page_id}/sections", response_model=SectionInstance, status_code=201)
async def create_page_section(page_id: str, request: CreateSectionRequest):
    service = _get_service()
    try:
        return service.create_section(page_id, request.type_id, request.properties, request.order)
    except UnknownTypeError as e:
        raise HTTPException(
            status_code=404,
            detail=f"{e}. Available: {service.registry.list_keys()}",
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})


@router.get("/{page_id}/sections/{section_id}", response_model=SectionInstance)
async def get_page_section(page_id: str, section_id: str):
    return _get_instance(page_id, section_id)


@router.put("/{page_id}/sections/{section_id}/properties", response_model=SectionInstance)
async def save_page_section(page_id: str, section_id: str, properties: dict[str, Any]):
    """Validate against the type's editor schema, then save."""
    instance = _get_instance(page_id, section_id)
    try:
        return _get_service().save_section(instance.id, properties)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})
    except UnknownTypeError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{page_id}/sections/{section_id}")
async def delete_page_section(page_id: str, section_id: str):
    instance = _get_instance(page_id, section_id)
    _get_service().delete_section(instance.id)
    return {"deleted": section_id}


@router.post(
    "/{page_id}/sections/{section_id}/duplicate",
    response_model=SectionInstance,
    status_code=201,
)
async def duplicate_page_section(
    page_id: str,
    section_id: str,
    options: Optional[DuplicateOptions] = None,
):
    """Copy a section; the copy lands directly after the original."""
    instance = _get_instance(page_id, section_id)
    return _get_service().duplicate_section(instance.id, options)


@router.post("/{page_id}/sections/{section_id}/migrate", response_model=MigrationResult)
async def migrate_page_section(page_id: str, section_id: str, request: MigrateSectionRequest):
    """Migrate a stored legacy hero. Persisted only with apply=true and a successful result."""
    instance = _get_instance(page_id, section_id)
    try:
        return _get_service().migrate_legacy_section(instance.id, request.target_variant, request.apply)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})


@router.get("/{page_id}/render", response_model=PageRenderResult)
async def render_page(
    page_id: str,
    mode: RenderMode = Query(RenderMode.STOREFRONT, description="editor, preview or storefront"),
):
    return await _get_service().render_page(page_id, mode)
