"""Variant factory schemas - cache statistics and preload reports."""

from typing import Optional

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """Snapshot of the factory cache."""

    components: int = Field(0, description="Cached storefront implementations")
    editors: int = Field(0, description="Cached editor implementations")
    previews: int = Field(0, description="Cached preview implementations")
    loading: int = Field(0, description="Loads currently in flight")
    keys: list[str] = Field(default_factory=list, description="Cached keys as '<section id>:<mode>'")


class PreloadResult(BaseModel):
    """Outcome of warming the cache for a batch of variants."""

    loaded: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(
        default_factory=dict,
        description="Key -> error message for loads that failed",
    )


class PreloadRequest(BaseModel):
    variants: Optional[list[str]] = Field(
        default=None,
        description="Variant names to warm; all active variants when omitted",
    )
