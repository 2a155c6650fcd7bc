"""Static implementation catalog.

Maps every (hero variant, implementation mode) pair to the template-backed
implementation that serves it, plus a lookup table for the built-in
non-variant sections. The factory's default loader builds implementations
from this catalog; template files are read on a worker thread.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from jinja2 import Environment

from pagebuilder.components.base import (
    EditorComponent,
    MediaResolver,
    PreviewComponent,
    SectionComponent,
    TemplateComponent,
    build_environment,
)
from pagebuilder.errors import SectionEngineError
from pagebuilder.sections.schemas import HeroVariant, ImplementationMode, SectionTypeDescriptor

logger = logging.getLogger(__name__)

PREVIEW_CHROME = "chrome/preview.html.j2"
EDITOR_FORM = "chrome/editor.html.j2"


class MissingImplementationError(SectionEngineError):
    """Raised when no implementation is catalogued for a section and mode."""

    def __init__(self, section_id: str, mode: ImplementationMode, implementation: str = ""):
        label = implementation or f"{section_id} {mode.value}"
        super().__init__(f"No implementation for {label}")
        self.section_id = section_id
        self.mode = mode
        self.implementation = implementation


@dataclass(frozen=True)
class ImplementationSpec:
    """Where an implementation's markup lives and which kind wraps it."""

    name: str
    template: str
    mode: ImplementationMode


# Hero variant -> (component base name, markup template)
VARIANT_TEMPLATES: dict[HeroVariant, tuple[str, str]] = {
    HeroVariant.CENTERED: ("HeroCentered", "hero/centered.html.j2"),
    HeroVariant.SPLIT_SCREEN: ("HeroSplitScreen", "hero/split-screen.html.j2"),
    HeroVariant.VIDEO: ("HeroVideo", "hero/video.html.j2"),
    HeroVariant.MINIMAL: ("HeroMinimal", "hero/minimal.html.j2"),
    HeroVariant.FEATURE: ("HeroFeature", "hero/feature.html.j2"),
    HeroVariant.TESTIMONIAL: ("HeroTestimonial", "hero/testimonial.html.j2"),
    HeroVariant.PRODUCT: ("HeroProduct", "hero/product.html.j2"),
    HeroVariant.SERVICE: ("HeroService", "hero/service.html.j2"),
    HeroVariant.CTA: ("HeroCta", "hero/cta.html.j2"),
    HeroVariant.GALLERY: ("HeroGallery", "hero/gallery.html.j2"),
}

_MODE_SUFFIX = {
    ImplementationMode.COMPONENT: "",
    ImplementationMode.EDITOR: "Editor",
    ImplementationMode.PREVIEW: "Preview",
}

VARIANT_CATALOG: dict[tuple[HeroVariant, ImplementationMode], ImplementationSpec] = {
    (variant, mode): ImplementationSpec(f"{base}{_MODE_SUFFIX[mode]}", template, mode)
    for variant, (base, template) in VARIANT_TEMPLATES.items()
    for mode in ImplementationMode
}

# Built-in non-variant sections, keyed by component name
LEGACY_TEMPLATES: dict[str, str] = {
    "HeroSection": "legacy/hero_section.html.j2",
    "TextBlock": "legacy/text_block.html.j2",
    "ImageText": "legacy/image_text.html.j2",
}


def variant_spec(variant: HeroVariant, mode: ImplementationMode) -> ImplementationSpec:
    return VARIANT_CATALOG[(variant, mode)]


def legacy_spec(section: SectionTypeDescriptor, mode: ImplementationMode) -> ImplementationSpec:
    """Look up a built-in section's implementation by its component names."""
    template = LEGACY_TEMPLATES.get(section.component_name)
    name = {
        ImplementationMode.COMPONENT: section.component_name,
        ImplementationMode.EDITOR: section.editor_component or "",
        ImplementationMode.PREVIEW: section.preview_component or "",
    }[mode]
    if template is None or not name:
        raise MissingImplementationError(section.id, mode, name or section.component_name)
    return ImplementationSpec(name, template, mode)


def spec_for(section: SectionTypeDescriptor, mode: ImplementationMode) -> ImplementationSpec:
    if section.variant is not None:
        return variant_spec(section.variant, mode)
    return legacy_spec(section, mode)


class CatalogLoader:
    """Default implementation loader backed by the static catalog."""

    def __init__(
        self,
        env: Optional[Environment] = None,
        templates_dir: Optional[Path] = None,
        media_resolver: Optional[MediaResolver] = None,
    ):
        self.env = env or build_environment(templates_dir, media_resolver)

    async def __call__(self, section: SectionTypeDescriptor, mode: ImplementationMode) -> SectionComponent:
        spec = spec_for(section, mode)
        return await asyncio.to_thread(self.build, spec, section)

    def build(self, spec: ImplementationSpec, section: SectionTypeDescriptor) -> SectionComponent:
        """Compile the templates for ``spec``. Blocking: reads template files."""
        template = self.env.get_template(spec.template)
        logger.debug(f"Built implementation {spec.name} from {spec.template}")
        if spec.mode == ImplementationMode.EDITOR:
            return EditorComponent(spec.name, section, template, self.env.get_template(EDITOR_FORM))
        if spec.mode == ImplementationMode.PREVIEW:
            return PreviewComponent(spec.name, section, template, self.env.get_template(PREVIEW_CHROME))
        return TemplateComponent(spec.name, section, template)


class StaticComponentTable:
    """Synchronously available implementations for built-in non-variant sections.

    Built once per (section id, mode) and reused; used by the renderer
    for sections that do not go through the variant factory.
    """

    def __init__(self, loader: CatalogLoader):
        self.loader = loader
        self._built: dict[tuple[str, ImplementationMode], SectionComponent] = {}

    def get(self, section: SectionTypeDescriptor, mode: ImplementationMode) -> SectionComponent:
        spec = legacy_spec(section, mode)
        key = (section.id, mode)
        component = self._built.get(key)
        if component is None:
            component = self.loader.build(spec, section)
            self._built[key] = component
        return component

    def clear(self) -> None:
        self._built.clear()
