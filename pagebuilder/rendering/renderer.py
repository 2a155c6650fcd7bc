"""Mode-dispatching section renderer.

Each request goes Resolve -> Load -> Render; any stage can fall through to
a placeholder instead:
- editor: a labelled notice with a dismiss action wired to on_cancel
- preview: a labelled notice naming what is missing
- storefront: nothing at all, or a neutral metadata card

Hero variants are loaded through the VariantFactory (storefront uses the
``component`` implementation); built-in non-variant sections come from a
static table and render synchronously. A failing section never affects
the rest of the page.
"""

import asyncio
import logging
from typing import Any, Callable, Iterable, Optional, Union

from jinja2 import Environment

from pagebuilder.components.base import ComponentRenderError, EditorBinding, EditorComponent, SectionComponent
from pagebuilder.components.catalog import CatalogLoader, MissingImplementationError, StaticComponentTable
from pagebuilder.errors import InactiveVariantError, LoadFailureError, UnknownVariantError
from pagebuilder.rendering.schemas import FallbackKind, PageRenderResult, RenderResult, RenderStatus
from pagebuilder.sections.registry import SectionRegistry
from pagebuilder.sections.schemas import (
    ImplementationMode,
    RenderMode,
    SectionInstance,
    SectionTypeDescriptor,
    parse_variant_id,
    to_hero_variant,
)
from pagebuilder.variants.factory import VariantFactory

logger = logging.getLogger(__name__)

IMPLEMENTATION_MODES: dict[RenderMode, ImplementationMode] = {
    RenderMode.EDITOR: ImplementationMode.EDITOR,
    RenderMode.PREVIEW: ImplementationMode.PREVIEW,
    RenderMode.STOREFRONT: ImplementationMode.COMPONENT,
}

SaveCallback = Callable[[dict[str, Any]], Any]
CancelCallback = Callable[[], Any]


def _consume_result(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


class SectionRenderer:
    """Renders section instances in editor, preview or storefront mode."""

    def __init__(
        self,
        registry: SectionRegistry,
        factory: Optional[VariantFactory] = None,
        static_components: Optional[StaticComponentTable] = None,
        env: Optional[Environment] = None,
    ):
        self.registry = registry
        self.factory = factory or VariantFactory(registry)
        loader = self.factory.loader if isinstance(self.factory.loader, CatalogLoader) else CatalogLoader()
        self.static_components = static_components or StaticComponentTable(loader)
        self.env = env or loader.env

    # -- Public API --

    async def render(
        self,
        section_id: str,
        properties: Optional[dict[str, Any]] = None,
        mode: Union[RenderMode, str] = RenderMode.STOREFRONT,
        on_save: Optional[SaveCallback] = None,
        on_cancel: Optional[CancelCallback] = None,
    ) -> RenderResult:
        """Render one section. Never raises for unknown, inactive or broken sections."""
        mode = RenderMode(mode)
        props = properties if properties is not None else {}

        resolved = self._resolve(section_id, mode, on_cancel)
        if isinstance(resolved, RenderResult):
            return resolved
        section = resolved

        try:
            component = await self._load(section, mode)
        except (UnknownVariantError, InactiveVariantError) as e:
            return self._unavailable(section_id, mode, str(e), on_cancel)
        except MissingImplementationError as e:
            return self._load_fallback(section, mode, FallbackKind.MISSING_IMPLEMENTATION, str(e), e.implementation, on_cancel)
        except LoadFailureError as e:
            return self._load_fallback(section, mode, FallbackKind.LOAD_FAILURE, str(e), None, on_cancel)

        return self._render_component(section, component, props, mode, on_save, on_cancel)

    def render_nowait(
        self,
        section_id: str,
        properties: Optional[dict[str, Any]] = None,
        mode: Union[RenderMode, str] = RenderMode.STOREFRONT,
        on_save: Optional[SaveCallback] = None,
        on_cancel: Optional[CancelCallback] = None,
    ) -> RenderResult:
        """Render immediately if possible, otherwise return a loading skeleton.

        When the implementation is not cached yet, the load is started in
        the background so a later render finds it ready. Must be called
        from a running event loop.
        """
        mode = RenderMode(mode)
        props = properties if properties is not None else {}

        resolved = self._resolve(section_id, mode, on_cancel)
        if isinstance(resolved, RenderResult):
            return resolved
        section = resolved

        if not self._is_variant(section):
            try:
                component = self.static_components.get(section, IMPLEMENTATION_MODES[mode])
            except MissingImplementationError as e:
                return self._load_fallback(section, mode, FallbackKind.MISSING_IMPLEMENTATION, str(e), e.implementation, on_cancel)
            return self._render_component(section, component, props, mode, on_save, on_cancel)

        impl_mode = IMPLEMENTATION_MODES[mode]
        cached = self.factory.get_cached(section.variant, impl_mode)
        if cached is not None:
            return self._render_component(section, cached, props, mode, on_save, on_cancel)

        task = asyncio.ensure_future(self.factory.load(section.variant, impl_mode))
        task.add_done_callback(_consume_result)
        return RenderResult(
            section_id=section_id,
            mode=mode,
            status=RenderStatus.LOADING,
            html=self._template("fallback/skeleton.html.j2", section_id=section_id),
        )

    async def render_instance(
        self,
        instance: SectionInstance,
        mode: Union[RenderMode, str] = RenderMode.STOREFRONT,
        on_save: Optional[SaveCallback] = None,
        on_cancel: Optional[CancelCallback] = None,
    ) -> RenderResult:
        result = await self.render(instance.type_id, instance.properties, mode, on_save, on_cancel)
        result.instance_id = instance.id
        return result

    async def render_page(
        self,
        instances: Iterable[SectionInstance],
        mode: Union[RenderMode, str] = RenderMode.STOREFRONT,
        page_id: Optional[str] = None,
    ) -> PageRenderResult:
        """Render sections by ``order`` (ties keep input order), loading concurrently."""
        mode = RenderMode(mode)
        ordered = [
            instance
            for _, instance in sorted(enumerate(instances), key=lambda pair: (pair[1].order, pair[0]))
        ]
        results = await asyncio.gather(*(self._render_isolated(i, mode) for i in ordered))

        fallback_count = sum(1 for r in results if r.status in (RenderStatus.FALLBACK, RenderStatus.EMPTY))
        logger.info(
            f"Rendered page {page_id or '<unsaved>'} in {mode.value} mode: "
            f"{len(results)} sections, {fallback_count} degraded"
        )
        return PageRenderResult(
            page_id=page_id,
            mode=mode,
            sections=list(results),
            html="\n".join(r.html for r in results if r.html),
            fallback_count=fallback_count,
        )

    # -- Resolve / Load / Render --

    def _is_variant(self, section: SectionTypeDescriptor) -> bool:
        return section.variant is not None and parse_variant_id(section.id) is not None

    def _resolve(
        self,
        section_id: str,
        mode: RenderMode,
        on_cancel: Optional[CancelCallback],
    ) -> Union[SectionTypeDescriptor, RenderResult]:
        section = self.registry.get(section_id)
        if section is None:
            logger.warning(f"Unknown section '{section_id}' requested in {mode.value} mode")
            if mode == RenderMode.STOREFRONT:
                return self._empty(section_id, mode, FallbackKind.UNKNOWN_SECTION, f"Section '{section_id}' not found")
            return RenderResult(
                section_id=section_id,
                mode=mode,
                status=RenderStatus.FALLBACK,
                fallback=FallbackKind.UNKNOWN_SECTION,
                message=f"Section '{section_id}' not found in registry",
                dismissible=mode == RenderMode.EDITOR,
                binding=self._cancel_binding(mode, on_cancel),
                html=self._template(
                    "fallback/unknown.html.j2",
                    section_id=section_id,
                    dismissible=mode == RenderMode.EDITOR,
                ),
            )

        variant_key = parse_variant_id(section_id)
        if variant_key is not None:
            hero = to_hero_variant(variant_key)
            if hero is None or section.variant != hero:
                return self._unavailable(section_id, mode, f"Unknown hero variant: '{variant_key}'", on_cancel)
            if not section.is_active:
                return self._unavailable(
                    section_id, mode,
                    f"Hero variant '{variant_key}' is not available or has been disabled",
                    on_cancel,
                )
        elif not section.is_active:
            return self._unavailable(
                section_id, mode,
                f"Section '{section.name}' is not available or has been disabled",
                on_cancel,
            )
        return section

    async def _load(self, section: SectionTypeDescriptor, mode: RenderMode) -> SectionComponent:
        impl_mode = IMPLEMENTATION_MODES[mode]
        if self._is_variant(section):
            return await self.factory.load(section.variant, impl_mode)
        return self.static_components.get(section, impl_mode)

    def _render_component(
        self,
        section: SectionTypeDescriptor,
        component: SectionComponent,
        props: dict[str, Any],
        mode: RenderMode,
        on_save: Optional[SaveCallback],
        on_cancel: Optional[CancelCallback],
    ) -> RenderResult:
        try:
            html = component.render(props)
        except ComponentRenderError as e:
            return self._load_fallback(section, mode, FallbackKind.RENDER_ERROR, str(e), component.name, on_cancel)

        binding = None
        if mode == RenderMode.EDITOR and isinstance(component, EditorComponent):
            binding = component.bind(on_save, on_cancel)
        return RenderResult(
            section_id=section.id,
            mode=mode,
            status=RenderStatus.RENDERED,
            html=html,
            implementation=component.name,
            binding=binding,
        )

    async def _render_isolated(self, instance: SectionInstance, mode: RenderMode) -> RenderResult:
        try:
            return await self.render_instance(instance, mode)
        except Exception as e:
            logger.error(f"Unexpected error rendering section {instance.id} ({instance.type_id}): {e}")
            result = self._error_placeholder(instance.type_id, mode, str(e))
            result.instance_id = instance.id
            return result

    # -- Fallbacks --

    def _template(self, template_name: str, /, **context: Any) -> str:
        return self.env.get_template(template_name).render(**context).strip()

    def _cancel_binding(self, mode: RenderMode, on_cancel: Optional[CancelCallback]) -> Optional[EditorBinding]:
        if mode != RenderMode.EDITOR:
            return None
        return EditorBinding(schema=None, on_cancel=on_cancel)

    def _empty(self, section_id: str, mode: RenderMode, kind: FallbackKind, message: str) -> RenderResult:
        return RenderResult(
            section_id=section_id,
            mode=mode,
            status=RenderStatus.EMPTY,
            fallback=kind,
            message=message,
        )

    def _unavailable(
        self,
        section_id: str,
        mode: RenderMode,
        message: str,
        on_cancel: Optional[CancelCallback],
    ) -> RenderResult:
        logger.warning(f"Section '{section_id}' unavailable in {mode.value} mode: {message}")
        if mode == RenderMode.STOREFRONT:
            return self._empty(section_id, mode, FallbackKind.VARIANT_UNAVAILABLE, message)
        dismissible = mode == RenderMode.EDITOR
        return RenderResult(
            section_id=section_id,
            mode=mode,
            status=RenderStatus.FALLBACK,
            fallback=FallbackKind.VARIANT_UNAVAILABLE,
            message=message,
            dismissible=dismissible,
            binding=self._cancel_binding(mode, on_cancel),
            html=self._template(
                "fallback/unavailable.html.j2",
                section_id=section_id,
                message=message,
                dismissible=dismissible,
            ),
        )

    def _load_fallback(
        self,
        section: SectionTypeDescriptor,
        mode: RenderMode,
        kind: FallbackKind,
        message: str,
        implementation: Optional[str],
        on_cancel: Optional[CancelCallback],
    ) -> RenderResult:
        logger.warning(f"Falling back for '{section.id}' in {mode.value} mode: {message}")
        if mode == RenderMode.STOREFRONT:
            html = self._template("fallback/card.html.j2", section=section)
            dismissible = False
        elif mode == RenderMode.PREVIEW:
            name = implementation or section.preview_component or section.component_name
            html = self._template(
                "fallback/not_implemented.html.j2",
                section_id=section.id,
                name=section.name,
                implementation=name,
            )
            dismissible = False
        else:
            html = self._template(
                "fallback/load_error.html.j2",
                section_id=section.id,
                name=section.name,
                message=message,
            )
            dismissible = True
        return RenderResult(
            section_id=section.id,
            mode=mode,
            status=RenderStatus.FALLBACK,
            fallback=kind,
            message=message,
            implementation=implementation,
            dismissible=dismissible,
            binding=self._cancel_binding(mode, on_cancel),
            html=html,
        )

    def _error_placeholder(self, section_id: str, mode: RenderMode, message: str) -> RenderResult:
        section = self.registry.get(section_id)
        if section is None:
            return self._empty(section_id, mode, FallbackKind.RENDER_ERROR, message)
        return self._load_fallback(section, mode, FallbackKind.RENDER_ERROR, message, None, None)
