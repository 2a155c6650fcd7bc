"""Page section service - placed sections backed by the page store.

Composes the store with the registry (default props on create), the
schema validator (validate before save), duplication, legacy migration
and the renderer (whole-page renders).
"""

import copy
import logging
from typing import Any, Optional, Union

from pagebuilder.editor.validator import SchemaValidationResult, SchemaValidator, get_schema_validator
from pagebuilder.errors import SectionInstanceNotFoundError, UnknownTypeError, ValidationError
from pagebuilder.migration.engine import MigrationEngine
from pagebuilder.migration.schemas import DuplicateOptions, MigrationOptions, MigrationResult
from pagebuilder.pages import store
from pagebuilder.rendering.renderer import SectionRenderer
from pagebuilder.rendering.schemas import PageRenderResult
from pagebuilder.sections.registry import SectionRegistry
from pagebuilder.sections.schemas import LEGACY_HERO_ID, HeroVariant, RenderMode, SectionInstance

logger = logging.getLogger(__name__)


class PageSectionService:
    def __init__(
        self,
        registry: SectionRegistry,
        renderer: SectionRenderer,
        migration_engine: Optional[MigrationEngine] = None,
        validator: Optional[SchemaValidator] = None,
    ):
        self.registry = registry
        self.renderer = renderer
        self.migration_engine = migration_engine or MigrationEngine(registry)
        self.validator = validator or get_schema_validator()

    def list_sections(self, page_id: str) -> list[SectionInstance]:
        return store.fetch_sections_for_page(page_id)

    def get_section(self, section_id: str) -> SectionInstance:
        instance = store.get_section_instance(section_id)
        if instance is None:
            raise SectionInstanceNotFoundError(section_id)
        return instance

    def create_section(
        self,
        page_id: str,
        type_id: str,
        properties: Optional[dict[str, Any]] = None,
        order: Optional[int] = None,
    ) -> SectionInstance:
        """Place a new section. Starts from the type's defaults when no properties are given."""
        section = self.registry.get(type_id)
        if section is None:
            raise UnknownTypeError(type_id)
        if not section.is_active:
            raise ValidationError(
                f"Section '{type_id}' is not available",
                [f"Section '{section.name}' is not available or has been disabled"],
            )
        props = copy.deepcopy(properties if properties is not None else section.default_props)
        return store.create_section_instance(page_id, type_id, props, order)

    def validate_properties(self, type_id: str, properties: dict[str, Any]) -> SchemaValidationResult:
        section = self.registry.get(type_id)
        if section is None:
            raise UnknownTypeError(type_id)
        if section.editor_schema is None:
            return SchemaValidationResult(is_valid=True)
        return self.validator.validate_props(section.editor_schema, properties)

    def save_section(self, section_id: str, properties: dict[str, Any]) -> SectionInstance:
        """Validate against the type's editor schema, then persist.

        Raises:
            ValidationError: with one "field: message" entry per failing field
        """
        instance = self.get_section(section_id)
        result = self.validate_properties(instance.type_id, properties)
        if not result.is_valid:
            raise ValidationError(
                f"Invalid properties for {instance.type_id}",
                [f"{e.field}: {e.message}" for e in result.errors],
            )
        store.save_section_properties(section_id, properties)
        return self.get_section(section_id)

    def delete_section(self, section_id: str) -> None:
        if not store.delete_section_instance(section_id):
            raise SectionInstanceNotFoundError(section_id)

    def duplicate_section(
        self,
        section_id: str,
        options: Optional[DuplicateOptions] = None,
    ) -> SectionInstance:
        """Copy an instance; the copy is placed directly after the original."""
        original = self.get_section(section_id)
        props = self.migration_engine.duplicate_section(original.properties, options)
        duplicate = store.create_section_instance(original.page_id, original.type_id, props, original.order)
        logger.info(f"Duplicated section {section_id} as {duplicate.id}")
        return duplicate

    def migrate_legacy_section(
        self,
        section_id: str,
        target_variant: Optional[Union[HeroVariant, str]] = None,
        apply: bool = False,
        options: Optional[MigrationOptions] = None,
    ) -> MigrationResult:
        """Migrate a stored legacy hero. Persists only when ``apply`` and successful."""
        instance = self.get_section(section_id)
        if instance.type_id != LEGACY_HERO_ID:
            raise ValidationError(
                f"Section {section_id} is not a legacy hero",
                [f"Expected type '{LEGACY_HERO_ID}', found '{instance.type_id}'"],
            )
        result = self.migration_engine.migrate(instance.properties, target_variant, options)
        if apply and result.success:
            store.update_section_type(section_id, result.new_type_id, result.new_properties)
        return result

    def list_legacy_sections(self) -> list[SectionInstance]:
        return store.list_sections_by_type(LEGACY_HERO_ID)

    async def render_page(
        self,
        page_id: str,
        mode: Union[RenderMode, str] = RenderMode.STOREFRONT,
    ) -> PageRenderResult:
        return await self.renderer.render_page(self.list_sections(page_id), mode, page_id=page_id)
