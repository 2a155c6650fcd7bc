#!/usr/bin/env python3
"""Migrate stored legacy hero sections to hero variants.

Old type: hero-section (flat title / subtitle / buttonText / backgroundImage)
New type: hero-<variant> (structured text, button and background objects)

This script:
1. Finds every stored section of type hero-section
2. Runs the migration engine on its properties
3. Prints warnings and errors per section
4. With --apply, rewrites successful sections in place

Dry run is the default; nothing is written without --apply.

Usage:
    python scripts/migrate_legacy_sections.py [--apply] [--variant NAME] [--page PAGE_ID]

Options:
    --apply            Persist successful migrations
    --variant NAME     Target variant (default: the top recommendation, else centered)
    --page PAGE_ID     Only migrate sections on this page
    --no-validate      Skip the target variant's required-field check
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pagebuilder.migration.engine import MigrationEngine  # noqa: E402
from pagebuilder.migration.schemas import MigrationOptions  # noqa: E402
from pagebuilder.pages import store  # noqa: E402
from pagebuilder.pages.db import init_db  # noqa: E402
from pagebuilder.sections.registry import get_section_registry  # noqa: E402
from pagebuilder.sections.schemas import LEGACY_HERO_ID, HeroVariant, to_hero_variant  # noqa: E402


def pick_variant(engine: MigrationEngine, properties: dict, requested: HeroVariant | None) -> HeroVariant:
    if requested is not None:
        return requested
    recommendations = engine.recommend_variants(properties)
    if recommendations:
        return recommendations[0].variant
    return HeroVariant.CENTERED


def main():
    parser = argparse.ArgumentParser(
        description="Migrate stored legacy hero sections to hero variants"
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Persist successful migrations (default is a dry run)",
    )
    parser.add_argument(
        "--variant",
        type=str,
        help="Target hero variant, e.g. centered or split-screen",
    )
    parser.add_argument(
        "--page",
        type=str,
        help="Only migrate sections on this page",
    )
    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip the target variant's required-field check",
    )
    args = parser.parse_args()

    requested = None
    if args.variant:
        requested = to_hero_variant(args.variant)
        if requested is None:
            print(f"Error: Unknown hero variant: '{args.variant}'")
            print(f"Available: {[v.value for v in HeroVariant]}")
            return 1

    init_db()
    engine = MigrationEngine(get_section_registry())
    options = MigrationOptions(validate_props=not args.no_validate)

    sections = store.list_sections_by_type(LEGACY_HERO_ID)
    if args.page:
        sections = [s for s in sections if s.page_id == args.page]

    print(f"{'' if args.apply else 'DRY RUN: '}Migrating {len(sections)} {LEGACY_HERO_ID} sections...")
    print()

    success_count = 0
    error_count = 0

    for section in sections:
        variant = pick_variant(engine, section.properties, requested)
        result = engine.migrate(section.properties, variant, options)
        label = f"{section.page_id}/{section.id}"

        if not result.success:
            error_count += 1
            print(f"Failed: {label} -> {result.new_type_id}")
            for error in result.errors:
                print(f"    error: {error}")
            continue

        success_count += 1
        print(f"Migrated: {label} -> {result.new_type_id}")
        for warning in result.warnings:
            print(f"    warning: {warning}")
        if args.apply:
            store.update_section_type(section.id, result.new_type_id, result.new_properties)

    print()
    print(f"Summary: {success_count} migrated, {error_count} errors")

    if not args.apply:
        print("\nThis was a dry run. No sections were modified.")
        print("Run with --apply to persist changes.")

    return 0 if error_count == 0 else 1


if __name__ == "__main__":
    exit(main())
