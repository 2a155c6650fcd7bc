"""Variant factory - lazy, cached, coalesced loading of hero implementations."""

from pagebuilder.variants.factory import VariantFactory

__all__ = ["VariantFactory"]
