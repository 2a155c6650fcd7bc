"""Migration schemas - options, results and recommendations."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from pagebuilder.sections.schemas import LEGACY_HERO_ID, HeroVariant


class MigrationOptions(BaseModel):
    validate_props: bool = Field(
        default=True,
        description="Check the target variant's required-field contract",
    )
    fallback_variant: HeroVariant = Field(
        default=HeroVariant.CENTERED,
        description="Target used when none is requested",
    )


class MigrationResult(BaseModel):
    """Outcome of migrating one legacy property bag. Never applied implicitly."""

    success: bool
    source_type_id: str = LEGACY_HERO_ID
    new_type_id: str
    new_properties: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class VariantRecommendation(BaseModel):
    variant: HeroVariant
    section_id: str
    reason: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class MigrationPreview(BaseModel):
    """Would-be migration (validation disabled) plus recommendations."""

    new_type_id: str
    preview: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    recommendations: list[VariantRecommendation] = Field(default_factory=list)


class BatchMigrationItem(BaseModel):
    id: str
    properties: dict[str, Any] = Field(default_factory=dict)
    target_variant: Optional[HeroVariant] = None


class BatchMigrationResult(BaseModel):
    id: str
    migration: MigrationResult


class DuplicateOptions(BaseModel):
    """How a section's properties are copied."""

    preserve_media: bool = True
    preserve_buttons: bool = Field(
        default=True,
        description="Keep button URLs; when False every button URL becomes '#'",
    )
    name_prefix: str = "Copy of "
