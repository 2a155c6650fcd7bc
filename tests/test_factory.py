"""Tests for the variant factory: caching, coalescing, timeouts and failures."""

import asyncio

import pytest

from pagebuilder.components.base import EditorComponent, PreviewComponent, TemplateComponent
from pagebuilder.errors import InactiveVariantError, LoadFailureError, UnknownVariantError
from pagebuilder.sections.schemas import HeroVariant, ImplementationMode
from pagebuilder.variants.factory import VariantFactory
from tests.helpers.recording_loader import RecordingLoader


@pytest.fixture
def factory(registry, recording_loader) -> VariantFactory:
    return VariantFactory(registry, loader=recording_loader, timeout=1.0)


class TestResolve:
    def test_unknown_variant(self, factory):
        with pytest.raises(UnknownVariantError, match="Unknown hero variant: 'diagonal'"):
            factory.resolve("diagonal")

    def test_unregistered_variant(self, registry, factory):
        registry.unregister("hero-gallery")
        with pytest.raises(UnknownVariantError):
            factory.resolve(HeroVariant.GALLERY)

    def test_inactive_variant(self, registry, factory):
        registry.patch("hero-video", {"is_active": False})
        with pytest.raises(InactiveVariantError, match="not available or has been disabled"):
            factory.resolve("video")


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_caches_per_variant_and_mode(self, factory, recording_loader):
        first = await factory.load(HeroVariant.CENTERED, ImplementationMode.COMPONENT)
        second = await factory.load("centered", "component")
        assert first is second
        assert recording_loader.calls == [("hero-centered", ImplementationMode.COMPONENT)]

        await factory.load_editor(HeroVariant.CENTERED)
        assert len(recording_loader.calls) == 2

    @pytest.mark.asyncio
    async def test_concurrent_loads_coalesce(self, factory, recording_loader):
        recording_loader.gated = True
        waiters = [
            asyncio.create_task(factory.load(HeroVariant.MINIMAL, ImplementationMode.PREVIEW))
            for _ in range(5)
        ]
        await asyncio.sleep(0)
        assert factory.is_loading(HeroVariant.MINIMAL, ImplementationMode.PREVIEW)

        recording_loader.release.set()
        results = await asyncio.gather(*waiters)
        assert all(r is results[0] for r in results)
        assert recording_loader.calls == [("hero-minimal", ImplementationMode.PREVIEW)]
        assert not factory.is_loading(HeroVariant.MINIMAL, ImplementationMode.PREVIEW)

    @pytest.mark.asyncio
    async def test_timeout_raises_load_failure(self, registry):
        loader = RecordingLoader(delay=0.5)
        factory = VariantFactory(registry, loader=loader, timeout=0.05)
        with pytest.raises(LoadFailureError, match="hero-cta:component"):
            await factory.load_component(HeroVariant.CTA)
        assert factory.get_cached(HeroVariant.CTA, ImplementationMode.COMPONENT) is None

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, registry):
        loader = RecordingLoader(error=RuntimeError("template missing"))
        factory = VariantFactory(registry, loader=loader)
        with pytest.raises(LoadFailureError, match="template missing"):
            await factory.load_component(HeroVariant.VIDEO)

        loader.error = None
        component = await factory.load_component(HeroVariant.VIDEO)
        assert component is not None
        assert len(loader.calls) == 2

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_abort_shared_load(self, factory, recording_loader):
        recording_loader.gated = True
        abandoned = asyncio.create_task(factory.load_component(HeroVariant.SERVICE))
        patient = asyncio.create_task(factory.load_component(HeroVariant.SERVICE))
        await asyncio.sleep(0)

        abandoned.cancel()
        with pytest.raises(asyncio.CancelledError):
            await abandoned

        recording_loader.release.set()
        component = await patient
        assert factory.get_cached(HeroVariant.SERVICE, ImplementationMode.COMPONENT) is component
        assert len(recording_loader.calls) == 1

    @pytest.mark.asyncio
    async def test_unknown_mode_raises_load_failure(self, factory, recording_loader):
        with pytest.raises(LoadFailureError, match="Unknown implementation mode: 'storefront'"):
            await factory.load(HeroVariant.CENTERED, "storefront")
        assert recording_loader.calls == []
        assert factory.get_cached(HeroVariant.CENTERED, "storefront") is None

    @pytest.mark.asyncio
    async def test_inactive_variant_is_refused_even_when_cached(self, registry, factory):
        await factory.load_component(HeroVariant.FEATURE)
        registry.patch("hero-feature", {"is_active": False})
        with pytest.raises(InactiveVariantError):
            await factory.load_component(HeroVariant.FEATURE)


class TestCatalogLoader:
    @pytest.mark.asyncio
    async def test_every_active_variant_loads_in_every_mode(self, registry):
        factory = VariantFactory(registry)
        kinds = {
            ImplementationMode.COMPONENT: TemplateComponent,
            ImplementationMode.PREVIEW: PreviewComponent,
            ImplementationMode.EDITOR: EditorComponent,
        }
        for variant in registry.hero_variants():
            for mode, kind in kinds.items():
                component = await factory.load(variant, mode)
                assert isinstance(component, kind), (variant, mode)

    @pytest.mark.asyncio
    async def test_implementation_names(self, registry):
        factory = VariantFactory(registry)
        assert (await factory.load_component(HeroVariant.CTA)).name == "HeroCta"
        assert (await factory.load_editor(HeroVariant.SPLIT_SCREEN)).name == "HeroSplitScreenEditor"
        assert (await factory.load_preview(HeroVariant.GALLERY)).name == "HeroGalleryPreview"


class TestCacheManagement:
    @pytest.mark.asyncio
    async def test_preload_and_stats(self, factory):
        result = await factory.preload([HeroVariant.CENTERED, "diagonal"])
        assert sorted(result.loaded) == [
            "hero-centered:component",
            "hero-centered:editor",
            "hero-centered:preview",
        ]
        assert set(result.failed) == {
            "hero-diagonal:component",
            "hero-diagonal:editor",
            "hero-diagonal:preview",
        }

        stats = factory.get_cache_stats()
        assert (stats.components, stats.editors, stats.previews, stats.loading) == (1, 1, 1, 0)

    @pytest.mark.asyncio
    async def test_preload_defaults_to_all_active_variants(self, factory, registry):
        result = await factory.preload()
        assert len(result.loaded) == 3 * len(registry.hero_variants())
        assert result.failed == {}

    @pytest.mark.asyncio
    async def test_clear_cache_forces_reload(self, factory, recording_loader):
        await factory.load_component(HeroVariant.CENTERED)
        factory.clear_cache()
        assert factory.get_cache_stats().components == 0
        await factory.load_component(HeroVariant.CENTERED)
        assert len(recording_loader.calls) == 2
