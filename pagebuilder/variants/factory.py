"""Variant factory - resolves (hero variant, mode) to a loaded implementation.

Loads are asynchronous and cached per (variant, mode). Concurrent requests
for the same uncached key share one in-flight load; a consumer that is
cancelled stops waiting but the shared load runs on and fills the cache.
Each load is bounded by a timeout. Failures are never cached: the next
request for the key retries.
"""

import asyncio
import logging
import os
from typing import Iterable, Optional, Protocol, Union

from pagebuilder.components.base import EditorComponent, PreviewComponent, SectionComponent
from pagebuilder.components.catalog import CatalogLoader
from pagebuilder.errors import InactiveVariantError, LoadFailureError, UnknownVariantError
from pagebuilder.sections.registry import SectionRegistry
from pagebuilder.sections.schemas import (
    HeroVariant,
    ImplementationMode,
    SectionTypeDescriptor,
    hero_section_id,
    to_hero_variant,
)
from pagebuilder.variants.schemas import CacheStats, PreloadResult

logger = logging.getLogger(__name__)

SECTION_LOAD_TIMEOUT = float(os.environ.get("SECTION_LOAD_TIMEOUT", "10"))

CacheKey = tuple[HeroVariant, ImplementationMode]


class ImplementationLoader(Protocol):
    """Builds the implementation of a section for one mode."""

    async def __call__(
        self, section: SectionTypeDescriptor, mode: ImplementationMode
    ) -> SectionComponent: ...


def _key_label(key: CacheKey) -> str:
    variant, mode = key
    return f"{hero_section_id(variant)}:{mode.value}"


def _parse_mode(mode: Union[ImplementationMode, str]) -> Optional[ImplementationMode]:
    try:
        return ImplementationMode(mode)
    except ValueError:
        return None


def _consume_result(task: asyncio.Task) -> None:
    # Abandoned loads still finish; read their outcome so failures are not reported as unretrieved
    if not task.cancelled():
        task.exception()


class VariantFactory:
    """Lazy, cached, coalescing loader of hero variant implementations.

    Usage:
        factory = VariantFactory(registry)
        component = await factory.load_component(HeroVariant.CENTERED)
        html = component.render(props)
    """

    def __init__(
        self,
        registry: SectionRegistry,
        loader: Optional[ImplementationLoader] = None,
        timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.loader = loader or CatalogLoader()
        self.timeout = SECTION_LOAD_TIMEOUT if timeout is None else timeout
        self._cache: dict[CacheKey, SectionComponent] = {}
        self._inflight: dict[CacheKey, asyncio.Task] = {}

    def resolve(self, variant: Union[HeroVariant, str]) -> tuple[HeroVariant, SectionTypeDescriptor]:
        """Check that a variant is known, registered and active."""
        hero = variant if isinstance(variant, HeroVariant) else to_hero_variant(variant)
        if hero is None:
            raise UnknownVariantError(str(variant))
        section = self.registry.get(hero_section_id(hero))
        if section is None:
            raise UnknownVariantError(hero.value)
        if not section.is_active:
            raise InactiveVariantError(hero.value)
        return hero, section

    async def load(
        self,
        variant: Union[HeroVariant, str],
        mode: Union[ImplementationMode, str],
    ) -> SectionComponent:
        """Return the implementation for (variant, mode), loading it if needed.

        Raises UnknownVariantError, InactiveVariantError or LoadFailureError
        (also for a mode that is not one of component / editor / preview).
        """
        hero, section = self.resolve(variant)
        impl_mode = _parse_mode(mode)
        if impl_mode is None:
            raise LoadFailureError(f"{hero_section_id(hero)}:{mode}", f"Unknown implementation mode: '{mode}'")
        key = (hero, impl_mode)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {_key_label(key)}")
            return cached

        # Lookup and insert happen without suspending, so one task per key
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key, section))
            task.add_done_callback(_consume_result)
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def load_component(self, variant: Union[HeroVariant, str]) -> SectionComponent:
        return await self.load(variant, ImplementationMode.COMPONENT)

    async def load_editor(self, variant: Union[HeroVariant, str]) -> EditorComponent:
        return await self.load(variant, ImplementationMode.EDITOR)

    async def load_preview(self, variant: Union[HeroVariant, str]) -> PreviewComponent:
        return await self.load(variant, ImplementationMode.PREVIEW)

    async def _load(self, key: CacheKey, section: SectionTypeDescriptor) -> SectionComponent:
        label = _key_label(key)
        try:
            component = await asyncio.wait_for(self.loader(section, key[1]), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Loading {label} timed out after {self.timeout}s")
            raise LoadFailureError(label, f"timed out after {self.timeout}s") from e
        except Exception as e:
            logger.error(f"Loading {label} failed: {e}")
            raise LoadFailureError(label, str(e)) from e
        else:
            self._cache[key] = component
            logger.debug(f"Loaded {label}")
            return component
        finally:
            self._inflight.pop(key, None)

    def get_cached(
        self,
        variant: Union[HeroVariant, str],
        mode: Union[ImplementationMode, str],
    ) -> Optional[SectionComponent]:
        """Return a cached implementation without loading."""
        hero = variant if isinstance(variant, HeroVariant) else to_hero_variant(variant)
        impl_mode = _parse_mode(mode)
        if hero is None or impl_mode is None:
            return None
        return self._cache.get((hero, impl_mode))

    def is_loading(self, variant: HeroVariant, mode: ImplementationMode) -> bool:
        return (variant, mode) in self._inflight

    async def preload(self, variants: Optional[Iterable[Union[HeroVariant, str]]] = None) -> PreloadResult:
        """Warm every mode of each variant; individual failures are collected.

        With no variants given, every active hero variant is preloaded.
        """
        targets = list(variants) if variants is not None else self.registry.hero_variants()
        jobs: list[tuple[str, Union[HeroVariant, str], ImplementationMode]] = []
        for variant in targets:
            name = variant.value if isinstance(variant, HeroVariant) else str(variant)
            for mode in ImplementationMode:
                jobs.append((f"hero-{name}:{mode.value}", variant, mode))

        outcomes = await asyncio.gather(
            *(self.load(variant, mode) for _, variant, mode in jobs),
            return_exceptions=True,
        )

        result = PreloadResult()
        for (label, _, _), outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                result.failed[label] = str(outcome)
            else:
                result.loaded.append(label)
        logger.info(f"Preloaded {len(result.loaded)} implementations, {len(result.failed)} failed")
        return result

    def get_cache_stats(self) -> CacheStats:
        """Counts of cached implementations per mode plus in-flight loads."""
        counts = {mode: 0 for mode in ImplementationMode}
        for _, mode in self._cache:
            counts[mode] += 1
        return CacheStats(
            components=counts[ImplementationMode.COMPONENT],
            editors=counts[ImplementationMode.EDITOR],
            previews=counts[ImplementationMode.PREVIEW],
            loading=len(self._inflight),
            keys=sorted(_key_label(key) for key in self._cache),
        )

    def clear_cache(self) -> None:
        """Drop every cached implementation. In-flight loads are not cancelled."""
        self._cache.clear()
        logger.info("Cleared variant implementation cache")
