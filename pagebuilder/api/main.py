"""Page Builder API - Section Composition & Rendering Service.

This API serves section definitions and renders them:
- Section type registry (hero variants and built-in sections)
- Rendering in editor, preview and storefront modes
- Legacy hero migration
- Sections placed on pages
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pagebuilder import __version__
from pagebuilder.api.routes import migrations, pages, render, sections
from pagebuilder.migration.engine import MigrationEngine
from pagebuilder.pages.db import init_db
from pagebuilder.pages.service import PageSectionService
from pagebuilder.rendering.renderer import SectionRenderer
from pagebuilder.sections.registry import get_section_registry
from pagebuilder.variants.factory import VariantFactory

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PRELOAD_VARIANTS = os.environ.get("PAGEBUILDER_PRELOAD_VARIANTS", "").lower() in ("1", "true")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Loading section definitions...")
    registry = get_section_registry()
    stats = registry.get_stats()
    logger.info(f"Loaded {stats.total} sections ({stats.active} active, {len(registry.hero_variants())} hero variants)")

    integration = registry.validate_integration()
    for error in integration.errors:
        logger.warning(f"Section integration: {error}")

    factory = VariantFactory(registry)
    renderer = SectionRenderer(registry, factory)
    migration_engine = MigrationEngine(registry)

    init_db()
    sections.init_registry(registry)
    render.init_renderer(renderer)
    migrations.init_engine(migration_engine)
    pages.init_service(PageSectionService(registry, renderer, migration_engine))

    if PRELOAD_VARIANTS:
        logger.info("Preloading hero variant implementations...")
        result = await factory.preload()
        logger.info(f"Preloaded {len(result.loaded)} implementations")

    logger.info("Page Builder API ready")
    yield
    logger.info("Shutting down Page Builder API")


app = FastAPI(
    title="Page Builder API",
    description="""
Section composition and rendering service.

- `GET /v1/sections` - List active section types
- `GET /v1/sections/{id}` - Get a full section definition
- `POST /v1/render` - Render a section in editor, preview or storefront mode
- `POST /v1/migrations/migrate` - Migrate legacy hero properties
- `GET /v1/pages/{page_id}/render` - Render a stored page
""",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sections.router, prefix="/v1")
app.include_router(render.router, prefix="/v1")
app.include_router(migrations.router, prefix="/v1")
app.include_router(pages.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Page Builder API",
        "version": __version__,
        "description": "Section composition and rendering service",
        "docs": "/docs",
        "endpoints": {
            "sections": "/v1/sections",
            "render": "/v1/render",
            "migrations": "/v1/migrations",
            "pages": "/v1/pages/{page_id}/sections",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    registry = get_section_registry()
    return {
        "status": "healthy",
        "sections_loaded": registry.count(),
        "hero_variants_active": len(registry.hero_variants()),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pagebuilder.api.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8000")),
        reload=True,
    )
