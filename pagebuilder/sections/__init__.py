"""Section type definitions - the catalog of placeable sections.

Hero variants are JSON definitions with an editor schema; legacy sections
(text block, image & text, the flat hero section) are plain definitions.
"""

from pagebuilder.sections.registry import SectionRegistry, get_section_registry
from pagebuilder.sections.schemas import (
    HeroVariant,
    ImplementationMode,
    RenderMode,
    SectionInstance,
    SectionSummary,
    SectionTypeDescriptor,
)

__all__ = [
    "HeroVariant",
    "ImplementationMode",
    "RenderMode",
    "SectionInstance",
    "SectionRegistry",
    "SectionSummary",
    "SectionTypeDescriptor",
    "get_section_registry",
]
