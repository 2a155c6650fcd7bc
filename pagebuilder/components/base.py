"""Section implementations rendered from Jinja2 templates.

A loaded implementation is a SectionComponent bound to compiled templates.
Three kinds exist, one per implementation mode:
- TemplateComponent: the public (storefront) markup
- PreviewComponent: the same markup inside admin preview chrome
- EditorComponent: a schema-driven form with a live preview, whose
  save/cancel actions are wired through an EditorBinding
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from jinja2 import ChainableUndefined, Environment, FileSystemLoader, Template, select_autoescape
from markupsafe import Markup

from pagebuilder.editor.paths import get_path
from pagebuilder.editor.schemas import EditorSchema
from pagebuilder.editor.validator import SchemaValidationResult, SchemaValidator, get_schema_validator
from pagebuilder.errors import SectionEngineError
from pagebuilder.sections.schemas import SectionTypeDescriptor

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


class ComponentRenderError(SectionEngineError):
    """Raised when a loaded implementation fails to render."""
    pass


class MediaResolver:
    """Turns media references into URLs.

    A reference is a URL string, a bare media id, or a media descriptor
    dict with ``url`` and/or ``id``. Bare ids go through ``resolve_media_url``;
    the core never fetches bytes.
    """

    def __init__(
        self,
        resolve_media_url: Optional[Callable[[str], str]] = None,
        media_base_url: str = "/media",
    ):
        self._resolve = resolve_media_url
        self.media_base_url = media_base_url.rstrip("/")

    def __call__(self, media: Any) -> str:
        if isinstance(media, dict):
            url = media.get("url")
            if url:
                return str(url)
            media_id = media.get("id")
            return self.resolve_id(str(media_id)) if media_id else ""
        if isinstance(media, str) and media:
            if media.startswith(("/", "#", "data:")) or "://" in media:
                return media
            return self.resolve_id(media)
        return ""

    def resolve_id(self, media_id: str) -> str:
        if self._resolve is not None:
            return self._resolve(media_id)
        return f"{self.media_base_url}/{media_id}"


def background_style(background: Any) -> str:
    """Inline CSS for a background block (color / gradient / image / none)."""
    if not isinstance(background, dict):
        return ""
    kind = background.get("type")
    if kind == "color" and background.get("color"):
        return f"background-color: {background['color']}"
    if kind == "gradient" and isinstance(background.get("gradient"), dict):
        gradient = background["gradient"]
        colors = gradient.get("colors")
        stops = ", ".join(
            f"{c.get('color')} {c.get('stop', 0)}%"
            for c in (colors if isinstance(colors, list) else [])
            if isinstance(c, dict)
        )
        if not stops:
            return ""
        if gradient.get("type") == "radial":
            return f"background: radial-gradient(circle, {stops})"
        return f"background: linear-gradient({gradient.get('direction', '180deg')}, {stops})"
    if kind == "image" and background.get("image"):
        image = background["image"]
        url = image.get("url") if isinstance(image, dict) else image
        if url:
            return f"background-image: url('{url}'); background-size: cover"
    return ""


def build_environment(
    templates_dir: Optional[Path] = None,
    media_resolver: Optional[MediaResolver] = None,
) -> Environment:
    """Jinja2 environment shared by every section implementation.

    Missing properties render as empty strings, so a partially filled
    property bag never breaks a render.
    """
    env = Environment(
        loader=FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "j2"), default=True),
        undefined=ChainableUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["media_url"] = media_resolver or MediaResolver()
    env.globals["background_style"] = background_style
    return env


class SectionComponent:
    """A loaded implementation for one (section, mode) pair."""

    kind = "component"

    def __init__(self, name: str, section: SectionTypeDescriptor, template: Template):
        self.name = name
        self.section = section
        self.template = template

    def render(self, props: dict[str, Any], **context: Any) -> str:
        """Render the implementation with the given properties."""
        try:
            return self.template.render(props=props, section=self.section, **context).strip()
        except Exception as e:
            # Template globals such as media_url can raise anything
            logger.error(f"Render failed for {self.name}: {e}")
            raise ComponentRenderError(f"Failed to render {self.name}: {e}") from e

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class TemplateComponent(SectionComponent):
    """Storefront markup for a section."""
    pass


class PreviewComponent(SectionComponent):
    """Section markup wrapped in the admin preview chrome."""

    kind = "preview"

    def __init__(
        self,
        name: str,
        section: SectionTypeDescriptor,
        template: Template,
        chrome: Template,
    ):
        super().__init__(name, section, template)
        self.chrome = chrome

    def render(self, props: dict[str, Any], **context: Any) -> str:
        body = Markup(super().render(props, **context))
        try:
            return self.chrome.render(section=self.section, body=body).strip()
        except Exception as e:
            logger.error(f"Preview chrome failed for {self.name}: {e}")
            raise ComponentRenderError(f"Failed to render {self.name}: {e}") from e


class EditorBinding:
    """Wires an editor's save/cancel actions to the caller.

    ``submit`` validates against the editor schema and only calls
    ``on_save`` when the properties are valid.
    """

    def __init__(
        self,
        schema: Optional[EditorSchema],
        on_save: Optional[Callable[[dict[str, Any]], Any]] = None,
        on_cancel: Optional[Callable[[], Any]] = None,
        validator: Optional[SchemaValidator] = None,
    ):
        self.schema = schema
        self.on_save = on_save
        self.on_cancel = on_cancel
        self.validator = validator or get_schema_validator()

    def submit(self, props: dict[str, Any]) -> SchemaValidationResult:
        if self.schema is not None:
            result = self.validator.validate_props(self.schema, props)
        else:
            result = SchemaValidationResult(is_valid=True)
        if result.is_valid and self.on_save is not None:
            self.on_save(props)
        return result

    def cancel(self) -> None:
        if self.on_cancel is not None:
            self.on_cancel()


class EditorComponent(SectionComponent):
    """Schema-driven editing form with a live preview of the section."""

    kind = "editor"

    def __init__(
        self,
        name: str,
        section: SectionTypeDescriptor,
        template: Template,
        form: Template,
        validator: Optional[SchemaValidator] = None,
    ):
        super().__init__(name, section, template)
        self.form = form
        self.schema = section.editor_schema
        self.validator = validator or get_schema_validator()

    def bind(
        self,
        on_save: Optional[Callable[[dict[str, Any]], Any]] = None,
        on_cancel: Optional[Callable[[], Any]] = None,
    ) -> EditorBinding:
        return EditorBinding(self.schema, on_save, on_cancel, self.validator)

    def render(self, props: dict[str, Any], **context: Any) -> str:
        schema = self.schema or EditorSchema()
        errors = context.pop("errors", None) or {}
        body = Markup(super().render(props, **context))
        try:
            values = {f.id: get_path(props, f.id) for f in schema.fields()}
            hidden = [
                f.id for f in schema.fields()
                if not self.validator.is_field_visible(schema, f.id, props)
            ]
            return self.form.render(
                section=self.section,
                schema=schema,
                values=values,
                hidden=hidden,
                errors=errors,
                body=body,
            ).strip()
        except Exception as e:
            logger.error(f"Editor form failed for {self.name}: {e}")
            raise ComponentRenderError(f"Failed to render {self.name}: {e}") from e
