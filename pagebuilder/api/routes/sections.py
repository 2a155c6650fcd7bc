"""API routes for section type definitions.

Read endpoints are open. Register, patch, unregister and reload mutate the
in-memory registry and require the admin role.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from pagebuilder.api.routes.dependencies import require_admin
from pagebuilder.editor.schemas import EditorSchema
from pagebuilder.editor.validator import SchemaValidationResult, get_schema_validator
from pagebuilder.errors import ValidationError
from pagebuilder.sections.registry import SectionRegistry
from pagebuilder.sections.schemas import (
    IntegrationReport,
    RegistryStats,
    SectionSummary,
    SectionTemplateData,
    SectionTypeDescriptor,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sections", tags=["sections"])

_registry: SectionRegistry | None = None


def init_registry(registry: SectionRegistry) -> None:
    global _registry
    _registry = registry


def _get_registry() -> SectionRegistry:
    if _registry is None:
        raise HTTPException(status_code=503, detail="Section registry not initialized")
    return _registry


def _get_or_404(section_id: str) -> SectionTypeDescriptor:
    registry = _get_registry()
    section = registry.get(section_id)
    if section is None:
        raise HTTPException(
            status_code=404,
            detail=f"Section '{section_id}' not found. Available: {registry.list_keys()}",
        )
    return section


def _unprocessable(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})


# ── List endpoints ───────────────────────────────────────


@router.get("", response_model=list[SectionSummary])
async def list_sections(
    include_inactive: bool = Query(False, description="Include disabled section types"),
):
    """List section types (summaries). Active only unless include_inactive is set."""
    return _get_registry().list_summaries(include_inactive=include_inactive)


@router.get("/categories", response_model=list[str])
async def list_categories():
    """All categories used by registered section types."""
    return _get_registry().all_categories()


@router.get("/stats", response_model=RegistryStats)
async def registry_stats():
    return _get_registry().get_stats()


@router.get("/integration", response_model=IntegrationReport)
async def integration_report():
    """Check the hero family for missing variants, components and migration paths."""
    return _get_registry().validate_integration()


@router.get("/templates", response_model=list[SectionTemplateData])
async def section_templates():
    """Seed rows (name, type, default props) for active section types."""
    return _get_registry().section_template_data()


@router.get("/search", response_model=list[SectionTypeDescriptor])
async def search_sections(q: str = Query(..., min_length=1, description="Matches name, description or tags")):
    return _get_registry().search(q)


@router.get("/heroes", response_model=list[SectionTypeDescriptor])
async def list_hero_sections():
    """Active hero variants in declaration order."""
    return _get_registry().list_hero_sections()


@router.get("/category/{category}", response_model=list[SectionTypeDescriptor])
async def sections_by_category(category: str):
    return _get_registry().list_by_category(category)


# ── Detail endpoints ─────────────────────────────────────


@router.get("/{section_id}", response_model=SectionTypeDescriptor)
async def get_section(section_id: str):
    """Get a full section type definition."""
    return _get_or_404(section_id)


@router.get("/{section_id}/editor-schema", response_model=Optional[EditorSchema])
async def get_editor_schema(section_id: str):
    """The editor schema, or null for section types edited without one."""
    return _get_or_404(section_id).editor_schema


@router.post("/{section_id}/validate", response_model=SchemaValidationResult)
async def validate_properties(section_id: str, properties: dict[str, Any]):
    """Validate a property bag against the section's editor schema."""
    section = _get_or_404(section_id)
    if section.editor_schema is None:
        return SchemaValidationResult(is_valid=True)
    return get_schema_validator().validate_props(section.editor_schema, properties)


# ── Runtime mutation (admin) ─────────────────────────────


@router.post("", response_model=SectionTypeDescriptor, status_code=201)
async def register_section(
    descriptor: dict[str, Any],
    role: str = Depends(require_admin),
):
    """Register a section type. An existing id is overwritten."""
    try:
        return _get_registry().register(descriptor)
    except ValidationError as e:
        raise _unprocessable(e)


@router.patch("/{section_id}", response_model=SectionTypeDescriptor)
async def patch_section(
    section_id: str,
    updates: dict[str, Any],
    role: str = Depends(require_admin),
):
    """Apply a partial update to a registered section type."""
    registry = _get_registry()
    try:
        patched = registry.patch(section_id, updates)
    except ValidationError as e:
        raise _unprocessable(e)
    if not patched:
        raise HTTPException(
            status_code=404,
            detail=f"Section '{section_id}' not found. Available: {registry.list_keys()}",
        )
    return registry.get(section_id)


@router.delete("/{section_id}")
async def unregister_section(section_id: str, role: str = Depends(require_admin)):
    registry = _get_registry()
    if not registry.unregister(section_id):
        raise HTTPException(
            status_code=404,
            detail=f"Section '{section_id}' not found. Available: {registry.list_keys()}",
        )
    return {"deleted": section_id}


@router.post("/reload")
async def reload_sections(role: str = Depends(require_admin)):
    """Reload definitions from disk, discarding runtime registrations."""
    registry = _get_registry()
    registry.reload()
    return {"reloaded": True, "count": registry.count()}
