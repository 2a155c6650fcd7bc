"""API routes for legacy hero migration.

Migration is a pure transform; these endpoints never persist anything.
Stored sections are migrated through the pages routes.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from pagebuilder.migration.engine import MigrationEngine
from pagebuilder.migration.schemas import (
    BatchMigrationItem,
    BatchMigrationResult,
    MigrationOptions,
    MigrationPreview,
    MigrationResult,
    VariantRecommendation,
)
from pagebuilder.sections.schemas import HeroVariant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/migrations", tags=["migrations"])

_engine: MigrationEngine | None = None


def init_engine(engine: MigrationEngine) -> None:
    global _engine
    _engine = engine


def _get_engine() -> MigrationEngine:
    if _engine is None:
        raise HTTPException(status_code=503, detail="Migration engine not initialized")
    return _engine


class MigrateRequest(BaseModel):
    properties: dict[str, Any] = Field(default_factory=dict)
    target_variant: Optional[HeroVariant] = None
    options: Optional[MigrationOptions] = None


class BatchMigrateRequest(BaseModel):
    sections: list[BatchMigrationItem] = Field(default_factory=list)
    options: Optional[MigrationOptions] = None


@router.post("/migrate", response_model=MigrationResult)
async def migrate(request: MigrateRequest):
    """Transform legacy hero properties. Failures are reported in the result, not as HTTP errors."""
    return _get_engine().migrate(request.properties, request.target_variant, request.options)


@router.post("/preview", response_model=MigrationPreview)
async def preview(request: MigrateRequest):
    """Dry-run migration (no contract check) with variant recommendations."""
    return _get_engine().preview_migration(request.properties, request.target_variant)


@router.post("/recommend", response_model=list[VariantRecommendation])
async def recommend(properties: dict[str, Any]):
    return _get_engine().recommend_variants(properties)


@router.post("/batch", response_model=list[BatchMigrationResult])
async def batch(request: BatchMigrateRequest):
    return _get_engine().batch_migrate(request.sections, request.options)
