"""Section registry - loads and serves section type definitions from JSON files.

Follows the definitions-registry pattern:
- JSON-per-file in definitions/ directory
- Lazy loading with _loaded guard
- In-memory dict keyed by section id
- Global singleton via get_section_registry() for the HTTP layer

Runtime mutation (register / unregister / patch) is serialized through a
single writer lock and validated before it takes effect.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from pagebuilder.editor.schemas import build_editor_schema, format_pydantic_errors
from pagebuilder.errors import ValidationError
from pagebuilder.sections.schemas import (
    LEGACY_MIGRATIONS,
    SECTION_CATEGORIES,
    CategoryStats,
    HeroVariant,
    IntegrationReport,
    RegistryStats,
    SectionSummary,
    SectionTemplateData,
    SectionTypeDescriptor,
    hero_section_id,
    parse_variant_id,
)

logger = logging.getLogger(__name__)

HERO_CATEGORY = SECTION_CATEGORIES["HERO"]


def descriptor_problems(data: dict[str, Any]) -> list[str]:
    """List every required item missing from a raw descriptor."""
    errors: list[str] = []
    if not data.get("id"):
        errors.append("Section ID is required")
    if not data.get("name"):
        errors.append("Section name is required")
    if not data.get("component_name"):
        errors.append("Component name is required")
    if not data.get("category"):
        errors.append("Category is required")
    if not data.get("description"):
        errors.append("Description is required")
    if data.get("default_props") is None:
        errors.append("Default props are required")
    if not isinstance(data.get("tags"), list):
        errors.append("Tags must be an array")
    return errors


class SectionRegistry:
    """Registry of section type definitions loaded from JSON files.

    Definitions are loaded from pagebuilder/sections/definitions/*.json.
    Each JSON file contains one SectionTypeDescriptor.
    """

    def __init__(self, definitions_dir: Optional[Path] = None):
        if definitions_dir is None:
            definitions_dir = Path(__file__).parent / "definitions"
        self.definitions_dir = definitions_dir
        self._sections: dict[str, SectionTypeDescriptor] = {}
        self._lock = threading.Lock()
        self._loaded = False

    def load(self) -> None:
        """Load all section definitions from JSON files."""
        if self._loaded:
            return

        if not self.definitions_dir.exists():
            logger.warning(f"Section definitions directory not found: {self.definitions_dir}")
            self._loaded = True
            return

        for json_file in sorted(self.definitions_dir.glob("*.json")):
            try:
                with open(json_file, "r") as f:
                    data = json.load(f)
                section = SectionTypeDescriptor.model_validate(data)
                self._sections[section.id] = section
                logger.debug(f"Loaded section: {section.id}")
            except Exception as e:
                logger.error(f"Failed to load section from {json_file}: {e}")

        self._loaded = True
        logger.info(f"Loaded {len(self._sections)} section definitions")

    # -- Lookup --

    def get(self, section_id: str) -> Optional[SectionTypeDescriptor]:
        """Get a section definition by id."""
        self.load()
        return self._sections.get(section_id)

    def list_all(self) -> list[SectionTypeDescriptor]:
        """List all section definitions, active or not."""
        self.load()
        return list(self._sections.values())

    def list_active(self) -> list[SectionTypeDescriptor]:
        """List active section definitions ordered by name."""
        self.load()
        return sorted(
            (s for s in self._sections.values() if s.is_active),
            key=lambda s: s.name,
        )

    def list_summaries(self, include_inactive: bool = False) -> list[SectionSummary]:
        """List lightweight summaries ordered by name; active sections only by default."""
        if include_inactive:
            sections = sorted(self.list_all(), key=lambda s: s.name)
        else:
            sections = self.list_active()
        return [
            SectionSummary(
                id=s.id,
                name=s.name,
                category=s.category,
                description=s.description,
                icon=s.icon,
                variant=s.variant,
                tags=s.tags,
                is_active=s.is_active,
                version=s.version,
            )
            for s in sections
        ]

    def list_keys(self) -> list[str]:
        """List all section ids."""
        self.load()
        return list(self._sections.keys())

    def count(self) -> int:
        """Get total number of sections."""
        self.load()
        return len(self._sections)

    def list_by_category(self, category: str) -> list[SectionTypeDescriptor]:
        """List active sections in a category."""
        return [s for s in self.list_active() if s.category == category]

    def search(self, query: str) -> list[SectionTypeDescriptor]:
        """Search active sections by name, description or tag."""
        query_lower = query.lower()
        return [
            s for s in self.list_active()
            if query_lower in s.name.lower()
            or query_lower in s.description.lower()
            or any(query_lower in tag.lower() for tag in s.tags)
        ]

    def all_categories(self) -> list[str]:
        """All known category names."""
        return list(SECTION_CATEGORIES.values())

    def get_stats(self) -> RegistryStats:
        """Counts of total / active / inactive sections, per category too."""
        self.load()
        by_category: dict[str, CategoryStats] = {}
        for s in self._sections.values():
            stats = by_category.setdefault(s.category, CategoryStats())
            stats.total += 1
            if s.is_active:
                stats.active += 1
        active = sum(1 for s in self._sections.values() if s.is_active)
        return RegistryStats(
            total=len(self._sections),
            active=active,
            inactive=len(self._sections) - active,
            categories=sorted(by_category),
            by_category=by_category,
        )

    # -- Hero helpers --

    def list_hero_sections(self) -> list[SectionTypeDescriptor]:
        """Active sections in the Hero category."""
        return self.list_by_category(HERO_CATEGORY)

    def hero_variants(self) -> list[HeroVariant]:
        """Active hero variants, in declaration order."""
        active = {s.variant for s in self.list_hero_sections() if s.variant is not None}
        return [v for v in HeroVariant if v in active]

    def get_hero_config(self, variant: Union[HeroVariant, str]) -> Optional[SectionTypeDescriptor]:
        """Get the section definition implementing a hero variant, active or not."""
        self.load()
        value = variant.value if isinstance(variant, HeroVariant) else variant
        for s in self._sections.values():
            if s.variant is not None and s.variant.value == value:
                return s
        return None

    def is_hero_section(self, section_id: str) -> bool:
        section = self.get(section_id)
        return section is not None and section.category == HERO_CATEGORY

    def is_variant_id(self, section_id: str) -> bool:
        """True for ids of the hero variant family (hero-<variant>)."""
        return parse_variant_id(section_id) is not None

    def validate_integration(self) -> IntegrationReport:
        """Check that every hero variant is registered and fully configured."""
        errors: list[str] = []
        warnings: list[str] = []

        expected = [hero_section_id(v) for v in HeroVariant]
        heroes = self.list_hero_sections()
        registered = [s.id for s in heroes]
        missing = [section_id for section_id in expected if section_id not in registered]
        if missing:
            errors.append(f"Missing hero variants: {', '.join(missing)}")

        for section in heroes:
            if section.variant is None and section.id not in LEGACY_MIGRATIONS:
                warnings.append(f"Hero section {section.id} is missing variant property")
            if not section.editor_component:
                warnings.append(f"Hero section {section.id} is missing editor component")
            if not section.preview_component:
                warnings.append(f"Hero section {section.id} is missing preview component")
            if not section.tags:
                warnings.append(f"Hero section {section.id} has no tags")
            if section.variant is not None and section.editor_schema is None:
                warnings.append(f"Hero section {section.id} has no editor schema")

        for legacy_id, target_id in LEGACY_MIGRATIONS.items():
            target = self.get(target_id)
            if target is None or not target.is_active:
                warnings.append(f"No migration mapping found for legacy {legacy_id}")

        return IntegrationReport(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            total_hero_variants=len(expected),
            active_hero_variants=len(heroes),
            registered_variants=registered,
        )

    def section_template_data(self) -> list[SectionTemplateData]:
        """Seed rows for every active section type."""
        return [
            SectionTemplateData(
                name=s.name,
                type=s.id,
                description=s.description,
                default_props=s.default_props,
                is_active=s.is_active,
            )
            for s in self.list_active()
        ]

    # -- Mutation --

    def register(self, descriptor: Union[SectionTypeDescriptor, dict[str, Any]]) -> SectionTypeDescriptor:
        """Validate and add a section definition.

        Raises ValidationError listing every problem; the registry is left
        unchanged on failure. Overwriting an existing id logs a warning.
        """
        self.load()
        data = (
            descriptor.model_dump()
            if isinstance(descriptor, SectionTypeDescriptor)
            else dict(descriptor)
        )
        section = self._validate(data)

        with self._lock:
            if section.id in self._sections:
                logger.warning(f"Section '{section.id}' already registered, overwriting")
            self._sections[section.id] = section
        logger.info(f"Registered section: {section.id}")
        return section

    def unregister(self, section_id: str) -> bool:
        """Remove a section definition. Returns False if it is not registered."""
        self.load()
        with self._lock:
            if section_id not in self._sections:
                return False
            del self._sections[section_id]
        logger.info(f"Unregistered section: {section_id}")
        return True

    def patch(self, section_id: str, updates: dict[str, Any]) -> bool:
        """Apply a partial update. Returns False if the id is not registered.

        Raises ValidationError if the patched definition is invalid; the
        existing entry is left untouched.
        """
        self.load()
        with self._lock:
            current = self._sections.get(section_id)
            if current is None:
                return False
            if "id" in updates and updates["id"] != section_id:
                raise ValidationError(
                    f"Invalid update for section '{section_id}'",
                    ["Section ID cannot be changed"],
                )
            merged = {**current.model_dump(), **updates}
            self._sections[section_id] = self._validate(merged)
        logger.info(f"Patched section {section_id}: {sorted(updates)}")
        return True

    def _validate(self, data: dict[str, Any]) -> SectionTypeDescriptor:
        problems = descriptor_problems(data)
        if problems:
            raise ValidationError(
                f"Invalid section definition '{data.get('id') or '<unnamed>'}'",
                problems,
            )
        try:
            if data.get("editor_schema") is not None:
                data = {**data, "editor_schema": build_editor_schema(data["editor_schema"])}
            return SectionTypeDescriptor.model_validate(data)
        except ValidationError as e:
            raise ValidationError(f"Invalid section definition '{data['id']}'", e.errors) from e
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid section definition '{data['id']}'",
                format_pydantic_errors(e, root="descriptor"),
            ) from e

    def reload(self) -> None:
        """Force reload all definitions, discarding runtime registrations."""
        with self._lock:
            self._loaded = False
            self._sections.clear()
        self.load()


# Global registry instance
_registry: Optional[SectionRegistry] = None


def get_section_registry() -> SectionRegistry:
    """Get the global section registry instance."""
    global _registry
    if _registry is None:
        _registry = SectionRegistry()
        _registry.load()
    return _registry
