"""Migration engine - legacy hero properties to hero variants.

migrate() runs the baseline transform, applies the target variant's
adapter (or overlays the baseline onto the variant's registry defaults),
checks the variant's required-field contract and reports attributes that
found no destination. It never raises and never mutates its input.

recommend_variants() scores variants with fixed heuristics; only the
relative order of the confidence constants is significant.
"""

import copy
import logging
from typing import AbstractSet, Any, Iterable, Optional, Union

from pagebuilder.errors import MigrationValidationError
from pagebuilder.migration.duplication import duplicate_properties
from pagebuilder.migration.adapters import (
    ADAPTERS,
    BASELINE_KEYS,
    CONSUMED_KEYS,
    KNOWN_LEGACY_KEYS,
    LEGACY_ALIASES,
    baseline_transform,
    contract_errors,
    normalize_legacy,
    overlay_consumed_keys,
    overlay_on_defaults,
)
from pagebuilder.migration.schemas import (
    BatchMigrationItem,
    BatchMigrationResult,
    DuplicateOptions,
    MigrationOptions,
    MigrationPreview,
    MigrationResult,
    VariantRecommendation,
)
from pagebuilder.sections.registry import SectionRegistry
from pagebuilder.sections.schemas import HeroVariant, hero_section_id, to_hero_variant

logger = logging.getLogger(__name__)

# Recommendation confidences
CONFIDENCE_CENTERED = 0.9
CONFIDENCE_SPLIT_SCREEN = 0.8
CONFIDENCE_MINIMAL = 0.7
CONFIDENCE_CTA = 0.6

ACTION_WORDS = ("buy", "get")

_DECLARATION_ORDER = {variant: index for index, variant in enumerate(HeroVariant)}


def _has_value(value: Any) -> bool:
    return value is not None and value != ""


def migration_warnings(
    old_props: dict[str, Any],
    consumed: AbstractSet[str] = BASELINE_KEYS,
    layout: str = HeroVariant.CENTERED.value,
) -> list[str]:
    """Attributes of the legacy bag that found no place in the new one.

    ``consumed`` is the set of flat legacy keys the chosen transform
    carries over; aliases count as their flat key unless the flat key
    is also set, in which case the alias loses.
    """
    flat = normalize_legacy(old_props)
    warnings: list[str] = []
    for key, value in old_props.items():
        if key not in KNOWN_LEGACY_KEYS:
            warnings.append(f"Property '{key}' has no equivalent in the new layout and was not migrated")
            continue
        if not _has_value(value):
            continue
        if key == "customCSS":
            warnings.append("Custom CSS styles were not migrated - please review and reapply if needed")
        elif key == "animations":
            warnings.append("Animation settings were not migrated - please reconfigure if needed")
        elif key in LEGACY_ALIASES:
            flat_key = LEGACY_ALIASES[key]
            if flat_key not in consumed or old_props.get(flat_key) is not None:
                warnings.append(f"Property '{key}' is not used by the {layout} layout and was not migrated")
        elif key == "backgroundImage":
            if key not in consumed:
                warnings.append("Background image may need to be reconfigured")
        elif key not in consumed or (key == "buttonLink" and not flat.get("buttonText")):
            warnings.append(f"Property '{key}' is not used by the {layout} layout and was not migrated")
    return warnings


class MigrationEngine:
    """Transforms legacy section properties into hero variant properties."""

    def __init__(self, registry: SectionRegistry):
        self.registry = registry

    def migrate(
        self,
        old_props: dict[str, Any],
        target_variant: Optional[Union[HeroVariant, str]] = None,
        options: Optional[MigrationOptions] = None,
    ) -> MigrationResult:
        """Migrate a legacy property bag. Failures come back as success=False."""
        options = options or MigrationOptions()
        requested = target_variant if target_variant is not None else options.fallback_variant
        fallback_id = f"hero-{requested.value if isinstance(requested, HeroVariant) else requested}"

        try:
            variant = requested if isinstance(requested, HeroVariant) else to_hero_variant(str(requested))
            if variant is None:
                raise ValueError(f"Unknown hero variant: '{requested}'")
            source = copy.deepcopy(old_props or {})
            new_type_id = hero_section_id(variant)
            new_props, consumed = self._transform(source, variant)
            warnings = migration_warnings(source, consumed, variant.value)

            if options.validate_props:
                self._check_contract(variant, new_props)

            logger.info(f"Migrated legacy section to {new_type_id} ({len(warnings)} warnings)")
            return MigrationResult(
                success=True,
                new_type_id=new_type_id,
                new_properties=new_props,
                warnings=warnings,
            )
        except MigrationValidationError as e:
            logger.info(f"Migration to {e.type_id} failed validation: {e.errors}")
            return MigrationResult(
                success=False,
                new_type_id=e.type_id,
                new_properties=new_props,
                warnings=warnings,
                errors=e.errors,
            )
        except Exception as e:
            logger.error(f"Migration to {fallback_id} failed: {e}")
            return MigrationResult(
                success=False,
                new_type_id=fallback_id,
                errors=[f"Migration failed: {e}"],
            )

    def _transform(
        self, source: dict[str, Any], variant: HeroVariant
    ) -> tuple[dict[str, Any], AbstractSet[str]]:
        """Return the new property bag and the legacy keys it carries over."""
        baseline = baseline_transform(source)
        if variant == HeroVariant.CENTERED:
            return baseline, BASELINE_KEYS
        adapter = ADAPTERS.get(variant)
        if adapter is not None:
            return adapter(baseline, normalize_legacy(source)), CONSUMED_KEYS[variant]

        target = self.registry.get(hero_section_id(variant))
        if target is None:
            raise ValueError(f"Hero variant '{variant.value}' is not registered")
        return (
            overlay_on_defaults(baseline, target.default_props),
            overlay_consumed_keys(target.default_props),
        )

    def _check_contract(self, variant: HeroVariant, props: dict[str, Any]) -> None:
        errors = contract_errors(variant, props)
        if errors:
            raise MigrationValidationError(hero_section_id(variant), errors)

    def recommend_variants(self, old_props: dict[str, Any]) -> list[VariantRecommendation]:
        """Rank variants suited to a legacy bag, best first. Non-exhaustive."""
        flat = normalize_legacy(old_props or {})
        candidates: list[tuple[HeroVariant, str, float]] = []

        if flat.get("backgroundImage"):
            candidates.append((
                HeroVariant.SPLIT_SCREEN,
                "Has background image - works well as media in split-screen layout",
                CONFIDENCE_SPLIT_SCREEN,
            ))
        if flat.get("buttonText") and not flat.get("subtitle"):
            candidates.append((
                HeroVariant.MINIMAL,
                "Simple structure with just title and button - perfect for minimal design",
                CONFIDENCE_MINIMAL,
            ))
        if flat.get("title") and flat.get("subtitle") and flat.get("buttonText"):
            candidates.append((
                HeroVariant.CENTERED,
                "Complete content structure - ideal for traditional centered layout",
                CONFIDENCE_CENTERED,
            ))
        title = str(flat.get("title") or "").lower()
        if flat.get("buttonText") and any(word in title for word in ACTION_WORDS):
            candidates.append((
                HeroVariant.CTA,
                "Action-oriented content - optimized for conversions",
                CONFIDENCE_CTA,
            ))

        available = set(self.registry.hero_variants())
        ranked = sorted(
            (c for c in candidates if c[0] in available),
            key=lambda c: (-c[2], _DECLARATION_ORDER[c[0]]),
        )
        return [
            VariantRecommendation(
                variant=variant,
                section_id=hero_section_id(variant),
                reason=reason,
                confidence=confidence,
            )
            for variant, reason, confidence in ranked
        ]

    def preview_migration(
        self,
        old_props: dict[str, Any],
        target_variant: Optional[Union[HeroVariant, str]] = None,
    ) -> MigrationPreview:
        """Dry run: migration with validation disabled, plus recommendations."""
        result = self.migrate(old_props, target_variant, MigrationOptions(validate_props=False))
        return MigrationPreview(
            new_type_id=result.new_type_id,
            preview=result.new_properties,
            warnings=result.warnings,
            errors=result.errors,
            recommendations=self.recommend_variants(old_props),
        )

    def batch_migrate(
        self,
        sections: Iterable[BatchMigrationItem],
        options: Optional[MigrationOptions] = None,
    ) -> list[BatchMigrationResult]:
        """Migrate each section independently."""
        results = [
            BatchMigrationResult(
                id=item.id,
                migration=self.migrate(item.properties, item.target_variant, options),
            )
            for item in sections
        ]
        failed = sum(1 for r in results if not r.migration.success)
        logger.info(f"Batch migrated {len(results)} sections ({failed} failed)")
        return results

    def duplicate_section(
        self,
        props: dict[str, Any],
        options: Optional[DuplicateOptions] = None,
    ) -> dict[str, Any]:
        return duplicate_properties(props, options)
