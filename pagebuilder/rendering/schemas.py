"""Render result schemas."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.json_schema import SkipJsonSchema

from pagebuilder.components.base import EditorBinding
from pagebuilder.sections.schemas import RenderMode, SectionInstance


class RenderStatus(str, Enum):
    RENDERED = "rendered"
    LOADING = "loading"
    FALLBACK = "fallback"
    EMPTY = "empty"


class FallbackKind(str, Enum):
    """Why a section degraded to a placeholder."""
    UNKNOWN_SECTION = "unknown_section"
    VARIANT_UNAVAILABLE = "variant_unavailable"
    LOAD_FAILURE = "load_failure"
    MISSING_IMPLEMENTATION = "missing_implementation"
    RENDER_ERROR = "render_error"


class RenderResult(BaseModel):
    """Outcome of rendering one section in one mode.

    Storefront results never carry internal error text in ``html``; the
    ``message`` field is for logs and admin surfaces only.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    section_id: str
    mode: RenderMode
    status: RenderStatus
    html: str = ""
    instance_id: Optional[str] = None
    implementation: Optional[str] = Field(
        default=None,
        description="Name of the implementation that rendered, or that was missing",
    )
    fallback: Optional[FallbackKind] = None
    message: Optional[str] = None
    dismissible: bool = False
    binding: Optional[SkipJsonSchema[EditorBinding]] = Field(
        default=None,
        exclude=True,
        description="Editor save/cancel wiring (editor mode only)",
    )


class PageRenderResult(BaseModel):
    """All sections of a page rendered in order."""

    page_id: Optional[str] = None
    mode: RenderMode
    sections: list[RenderResult] = Field(default_factory=list)
    html: str = ""
    fallback_count: int = 0


class RenderRequest(BaseModel):
    section_id: str
    properties: dict[str, Any] = Field(default_factory=dict)
    mode: RenderMode = RenderMode.STOREFRONT


class PageRenderRequest(BaseModel):
    """Render an unsaved page from inline section instances."""

    sections: list[SectionInstance] = Field(default_factory=list)
    mode: RenderMode = RenderMode.STOREFRONT
    page_id: Optional[str] = None
