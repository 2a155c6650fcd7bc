"""Tests for the section type registry."""

import json

import pytest

from pagebuilder.errors import ValidationError
from pagebuilder.sections.registry import SectionRegistry, descriptor_problems
from pagebuilder.sections.schemas import HeroVariant


def make_descriptor(**overrides) -> dict:
    data = {
        "id": "promo-banner",
        "name": "Promo Banner",
        "component_name": "PromoBanner",
        "category": "Call to Action",
        "description": "A slim promotional strip",
        "default_props": {"text": "Free shipping"},
        "tags": ["promo", "banner"],
    }
    data.update(overrides)
    return data


class TestLoading:
    def test_packaged_definitions_load(self, registry):
        assert registry.count() == 16
        assert registry.get("hero-centered").variant == HeroVariant.CENTERED

    def test_missing_directory_loads_nothing(self, empty_registry):
        assert empty_registry.count() == 0

    def test_bad_file_is_skipped(self, tmp_path):
        (tmp_path / "good.json").write_text(json.dumps(make_descriptor()))
        (tmp_path / "broken.json").write_text("{not json")
        reg = SectionRegistry(tmp_path)
        assert reg.list_keys() == ["promo-banner"]

    def test_reload_discards_runtime_registrations(self, registry):
        registry.register(make_descriptor())
        registry.reload()
        assert registry.get("promo-banner") is None
        assert registry.count() == 16


class TestLookup:
    def test_active_listing_is_sorted_by_name(self, registry):
        names = [s.name for s in registry.list_active()]
        assert names == sorted(names)
        assert "Hero Section (Legacy)" not in names

    def test_summaries_can_include_inactive_sections(self, registry):
        active = [s.id for s in registry.list_summaries()]
        everything = registry.list_summaries(include_inactive=True)
        assert "hero-section" not in active
        assert "hero-section" in [s.id for s in everything]
        assert len(everything) == 16
        assert not next(s for s in everything if s.id == "hero-section").is_active

    def test_search_matches_name_description_and_tags(self, registry):
        assert "hero-video" in [s.id for s in registry.search("multimedia")]
        assert "text-block" in [s.id for s in registry.search("TEXT BLOCK")]
        assert registry.search("pricing") == []

    def test_by_category(self, registry):
        ids = {s.id for s in registry.list_by_category("Content")}
        assert ids == {"text-block", "image-text"}

    def test_stats(self, registry):
        stats = registry.get_stats()
        assert stats.total == 16
        assert stats.active == 12
        assert stats.inactive == 4
        assert stats.by_category["Hero"].total == 11
        assert stats.by_category["Hero"].active == 10

    def test_hero_variants_in_declaration_order(self, registry):
        assert registry.hero_variants() == list(HeroVariant)

    def test_hero_helpers(self, registry):
        assert registry.get_hero_config("split-screen").id == "hero-split-screen"
        assert registry.get_hero_config(HeroVariant.GALLERY).id == "hero-gallery"
        assert registry.get_hero_config("diagonal") is None
        assert registry.is_hero_section("hero-section")
        assert not registry.is_hero_section("text-block")
        assert registry.is_variant_id("hero-video")
        assert not registry.is_variant_id("hero-section")

    def test_integration_report_is_clean(self, registry):
        report = registry.validate_integration()
        assert report.is_valid
        assert report.errors == []
        assert report.active_hero_variants == 10

    def test_integration_report_flags_missing_variant(self, registry):
        registry.unregister("hero-gallery")
        report = registry.validate_integration()
        assert not report.is_valid
        assert report.errors == ["Missing hero variants: hero-gallery"]

    def test_section_template_data_covers_active_sections(self, registry):
        rows = registry.section_template_data()
        assert {row.type for row in rows} == {s.id for s in registry.list_active()}


class TestRegister:
    def test_descriptor_problems_lists_everything(self):
        problems = descriptor_problems({"tags": "hero"})
        assert problems == [
            "Section ID is required",
            "Section name is required",
            "Component name is required",
            "Category is required",
            "Description is required",
            "Default props are required",
            "Tags must be an array",
        ]

    def test_register_adds_section(self, registry):
        section = registry.register(make_descriptor())
        assert section.id == "promo-banner"
        assert registry.get("promo-banner").default_props == {"text": "Free shipping"}

    def test_missing_default_props_leaves_registry_unchanged(self, registry):
        before = registry.list_keys()
        data = make_descriptor()
        del data["default_props"]
        with pytest.raises(ValidationError) as exc_info:
            registry.register(data)
        assert "Default props are required" in exc_info.value.errors
        assert registry.list_keys() == before

    def test_invalid_editor_schema_is_rejected(self, registry):
        data = make_descriptor(editor_schema={
            "sections": [{"id": "s", "title": "S", "fields": [
                {"id": "a", "type": "text", "label": "A", "dependencies": ["a"]},
            ]}],
        })
        with pytest.raises(ValidationError) as exc_info:
            registry.register(data)
        assert "Field 'a' depends on 'a', which is not declared before it" in exc_info.value.errors
        assert registry.get("promo-banner") is None

    def test_overwrite_logs_warning(self, registry, caplog):
        registry.register(make_descriptor())
        registry.register(make_descriptor(name="Promo Banner v2"))
        assert registry.get("promo-banner").name == "Promo Banner v2"
        assert "already registered" in caplog.text

    def test_unregister(self, registry):
        assert registry.unregister("text-block")
        assert registry.get("text-block") is None
        assert not registry.unregister("text-block")


class TestPatch:
    def test_patch_updates_fields(self, registry):
        assert registry.patch("hero-video", {"is_active": False})
        assert not registry.get("hero-video").is_active
        assert HeroVariant.VIDEO not in registry.hero_variants()

    def test_patch_unknown_id(self, registry):
        assert registry.patch("nope", {"name": "x"}) is False

    def test_patch_cannot_change_id(self, registry):
        with pytest.raises(ValidationError) as exc_info:
            registry.patch("hero-video", {"id": "hero-film"})
        assert exc_info.value.errors == ["Section ID cannot be changed"]

    def test_invalid_patch_leaves_entry_untouched(self, registry):
        with pytest.raises(ValidationError):
            registry.patch("hero-video", {"tags": "video"})
        assert registry.get("hero-video").tags[0] == "hero"
