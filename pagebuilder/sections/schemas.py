"""Section type schemas - data models for the section catalog.

A SectionTypeDescriptor describes one placeable section type. Hero
variants carry a ``variant`` and an ``editor_schema``; legacy sections
(text block, image & text, the flat hero section) carry neither.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from pagebuilder.editor.schemas import EditorSchema


class HeroVariant(str, Enum):
    """The closed set of interchangeable hero layouts, in declaration order."""
    CENTERED = "centered"
    SPLIT_SCREEN = "split-screen"
    VIDEO = "video"
    MINIMAL = "minimal"
    FEATURE = "feature"
    TESTIMONIAL = "testimonial"
    PRODUCT = "product"
    SERVICE = "service"
    CTA = "cta"
    GALLERY = "gallery"


class RenderMode(str, Enum):
    """Where a section is rendered."""
    EDITOR = "editor"
    PREVIEW = "preview"
    STOREFRONT = "storefront"


class ImplementationMode(str, Enum):
    """Which implementation of a variant is loaded; COMPONENT serves storefront."""
    EDITOR = "editor"
    PREVIEW = "preview"
    COMPONENT = "component"


HERO_PREFIX = "hero-"
LEGACY_HERO_ID = "hero-section"
BASELINE_HERO_ID = "hero-centered"

# Legacy section id -> section id its instances migrate to
LEGACY_MIGRATIONS: dict[str, str] = {
    LEGACY_HERO_ID: BASELINE_HERO_ID,
}

SECTION_CATEGORIES: dict[str, str] = {
    "HERO": "Hero",
    "CONTENT": "Content",
    "LAYOUT": "Layout",
    "MEDIA": "Media",
    "FORMS": "Forms",
    "NAVIGATION": "Navigation",
    "FOOTER": "Footer",
    "ECOMMERCE": "E-commerce",
    "TESTIMONIALS": "Testimonials",
    "PRICING": "Pricing",
    "TEAM": "Team",
    "FEATURES": "Features",
    "CTA": "Call to Action",
    "GALLERY": "Gallery",
    "BLOG": "Blog",
    "CONTACT": "Contact",
    "SOCIAL": "Social Media",
    "STATS": "Statistics",
    "FAQ": "FAQ",
    "TIMELINE": "Timeline",
}


def hero_section_id(variant: HeroVariant) -> str:
    return f"{HERO_PREFIX}{variant.value}"


def parse_variant_id(section_id: str) -> Optional[str]:
    """Return the raw variant key of a hero-family id, or None.

    The legacy ``hero-section`` id is not part of the variant family.
    """
    if section_id == LEGACY_HERO_ID or not section_id.startswith(HERO_PREFIX):
        return None
    return section_id[len(HERO_PREFIX):]


def to_hero_variant(value: str) -> Optional[HeroVariant]:
    try:
        return HeroVariant(value)
    except ValueError:
        return None


class ResponsiveSupport(BaseModel):
    """Responsive capabilities a variant declares."""

    breakpoints: list[str] = Field(default_factory=list)
    adaptive_layout: bool = False
    responsive_images: bool = False
    responsive_typography: bool = False


class SectionTypeDescriptor(BaseModel):
    """Identity and metadata for one section type."""

    # Identity
    id: str = Field(..., description="Unique, stable key used in persistence and URLs")
    name: str = Field(..., description="Display name")
    component_name: str = Field(
        default="",
        description="Storefront implementation name (static table key for legacy types)",
    )
    category: str = Field(default="", description="One of SECTION_CATEGORIES values")
    description: str = ""
    icon: str = ""

    # Variant family membership
    variant: Optional[HeroVariant] = Field(
        default=None,
        description="Hero variant this type implements; None for non-variant types",
    )

    default_props: dict[str, Any] = Field(
        default_factory=dict,
        description="Canonical property bag for newly created instances",
    )
    editor_component: Optional[str] = None
    preview_component: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    version: str = "1.0.0"

    # Variant metadata
    required_features: list[str] = Field(default_factory=list)
    optional_features: list[str] = Field(default_factory=list)
    responsive_support: Optional[ResponsiveSupport] = None
    supported_themes: list[str] = Field(default_factory=list)
    editor_schema: Optional[EditorSchema] = Field(
        default=None,
        description="Editor form for this type; hero variants always declare one",
    )


class SectionSummary(BaseModel):
    """Lightweight section type summary for pickers and listings."""

    id: str
    name: str
    category: str
    description: str = ""
    icon: str = ""
    variant: Optional[HeroVariant] = None
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    version: str = "1.0.0"


class SectionInstance(BaseModel):
    """A placed, persisted occurrence of a section type within a page."""

    id: str
    page_id: str
    order: int = Field(default=0, description="Render sequence; ties keep insertion order")
    type_id: str
    properties: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CategoryStats(BaseModel):
    total: int = 0
    active: int = 0


class RegistryStats(BaseModel):
    """Counts across the registry."""

    total: int
    active: int
    inactive: int
    categories: list[str] = Field(default_factory=list)
    by_category: dict[str, CategoryStats] = Field(default_factory=dict)


class IntegrationReport(BaseModel):
    """Consistency check of the hero family against the registry."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    total_hero_variants: int = 0
    active_hero_variants: int = 0
    registered_variants: list[str] = Field(default_factory=list)


class SectionTemplateData(BaseModel):
    """Seed row for a section template table."""

    name: str
    type: str
    description: str = ""
    default_props: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
