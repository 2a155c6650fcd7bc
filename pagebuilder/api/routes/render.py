"""API routes for rendering sections and managing the variant cache."""

import logging

from fastapi import APIRouter, HTTPException

from pagebuilder.rendering.renderer import SectionRenderer
from pagebuilder.rendering.schemas import PageRenderRequest, PageRenderResult, RenderRequest, RenderResult
from pagebuilder.variants.schemas import CacheStats, PreloadRequest, PreloadResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/render", tags=["render"])

_renderer: SectionRenderer | None = None


def init_renderer(renderer: SectionRenderer) -> None:
    global _renderer
    _renderer = renderer


def _get_renderer() -> SectionRenderer:
    if _renderer is None:
        raise HTTPException(status_code=503, detail="Section renderer not initialized")
    return _renderer


@router.post("", response_model=RenderResult)
async def render_section(request: RenderRequest):
    """Render one section. Unknown or broken sections come back as fallbacks, not errors."""
    return await _get_renderer().render(request.section_id, request.properties, request.mode)


@router.post("/page", response_model=PageRenderResult)
async def render_page(request: PageRenderRequest):
    """Render an unsaved page from inline section instances."""
    return await _get_renderer().render_page(request.sections, request.mode, page_id=request.page_id)


# ── Variant cache ────────────────────────────────────────


@router.get("/cache", response_model=CacheStats)
async def cache_stats():
    return _get_renderer().factory.get_cache_stats()


@router.post("/preload", response_model=PreloadResult)
async def preload_variants(request: PreloadRequest):
    """Warm every mode of the given variants (all active variants by default)."""
    return await _get_renderer().factory.preload(request.variants)


@router.delete("/cache")
async def clear_cache():
    renderer = _get_renderer()
    renderer.factory.clear_cache()
    renderer.static_components.clear()
    return {"cleared": True}
