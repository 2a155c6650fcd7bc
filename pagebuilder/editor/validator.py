"""Schema-driven validation of section properties before save.

Validates a property bag against a variant's EditorSchema:
- declared rules (required / minLength / maxLength / pattern)
- type checks per control (url, color, number range, media descriptors)
- custom validators registered by field id or field type

Fields hidden by their dependency rules are skipped, so a value the
editor cannot see never blocks a save.
"""

import logging
import re
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from pagebuilder.editor.paths import get_path
from pagebuilder.editor.schemas import (
    DependencyAction,
    DependencyCondition,
    EditorField,
    EditorSchema,
    FieldType,
    RuleType,
)

logger = logging.getLogger(__name__)


class FieldError(BaseModel):
    """A single validation finding for one field."""

    field: str = Field(..., description="Field id (dot-path) the finding applies to")
    message: str
    type: str = Field(default="error", description="'error' or 'warning'")
    code: str = Field(default="", description="Machine-readable code, e.g. 'REQUIRED'")


class SchemaValidationResult(BaseModel):
    """Outcome of validating a property bag against an editor schema."""

    is_valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    warnings: list[FieldError] = Field(default_factory=list)

    def error_map(self) -> dict[str, str]:
        """Field id -> first error message, for form display."""
        formatted: dict[str, str] = {}
        for error in self.errors:
            formatted.setdefault(error.field, error.message)
        return formatted


class ValidationContext(BaseModel):
    """What a custom validator receives."""

    field_id: str
    value: Any = None
    all_values: dict[str, Any] = Field(default_factory=dict)
    field: EditorField


CustomValidator = Callable[[ValidationContext], list[FieldError]]

_ABSOLUTE_URL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://[^\s/?#]+[^\s]*$")
_MAILTO_URL = re.compile(r"^(mailto|tel):\S+$")
_HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3}|[A-Fa-f0-9]{8})$")
_RGB_COLOR = re.compile(
    r"^rgba?\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*(,\s*[\d.]+)?\s*\)$"
)
_HSL_COLOR = re.compile(
    r"^hsla?\(\s*\d+\s*,\s*\d+%\s*,\s*\d+%\s*(,\s*[\d.]+)?\s*\)$"
)
NAMED_COLORS = {
    "black", "white", "red", "green", "blue", "yellow", "orange", "purple",
    "pink", "brown", "gray", "grey", "transparent", "currentcolor",
}
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi")
VIDEO_HOSTS = ("youtube.com", "youtu.be", "vimeo.com")


def is_empty(value: Any) -> bool:
    """Empty means None, blank string, empty list or empty dict."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def is_valid_url(url: str) -> bool:
    """Relative paths, anchors, mailto/tel and absolute URLs are accepted."""
    if url.startswith("/") or url.startswith("#"):
        return True
    return bool(_ABSOLUTE_URL.match(url) or _MAILTO_URL.match(url))


def is_valid_color(color: str) -> bool:
    if _HEX_COLOR.match(color) or _RGB_COLOR.match(color) or _HSL_COLOR.match(color):
        return True
    return color.lower() in NAMED_COLORS


def _is_video_url(url: str) -> bool:
    lowered = url.lower().split("?", 1)[0]
    if lowered.endswith(VIDEO_EXTENSIONS):
        return True
    return any(host in lowered for host in VIDEO_HOSTS)


def _condition_holds(actual: Any, condition: DependencyCondition, expected: Any) -> bool:
    if condition == DependencyCondition.EQUALS:
        return actual == expected
    return actual != expected


class SchemaValidator:
    """Validates property bags against editor schemas.

    A single validator instance can serve every variant; custom validators
    are looked up first by field id, then by field type.
    """

    def __init__(self):
        self._custom: dict[str, list[CustomValidator]] = {}

    def register_validator(self, key: str, validator: CustomValidator) -> None:
        """Register a custom validator for a field id or a field type value."""
        self._custom.setdefault(key, []).append(validator)
        logger.debug(f"Registered custom validator for '{key}'")

    def is_field_visible(
        self,
        schema: EditorSchema,
        field_id: str,
        values: dict[str, Any],
        _seen: Optional[set[str]] = None,
    ) -> bool:
        """Evaluate dependency rules for a field.

        Every rule targeting the field must allow it. A field that declares
        dependencies without an explicit rule is shown once each dependency
        has a value. A field whose parent is hidden is hidden too.
        """
        field = schema.get_field(field_id)
        if field is None:
            return False
        seen = _seen or set()
        seen.add(field_id)

        rules = schema.rules_for(field_id)
        for rule in rules:
            actual = get_path(values, rule.depends_on)
            holds = _condition_holds(actual, rule.condition, rule.value)
            if rule.action == DependencyAction.SHOW and not holds:
                return False
            if rule.action == DependencyAction.HIDE and holds:
                return False

        ruled_parents = {rule.depends_on for rule in rules}
        for parent in field.dependencies:
            if parent not in ruled_parents and is_empty(get_path(values, parent)):
                return False

        for parent in ruled_parents | set(field.dependencies):
            if parent in seen:
                continue
            if not self.is_field_visible(schema, parent, values, seen):
                return False
        return True

    def visible_fields(self, schema: EditorSchema, values: dict[str, Any]) -> list[EditorField]:
        return [f for f in schema.fields() if self.is_field_visible(schema, f.id, values)]

    def validate_field(
        self,
        field: EditorField,
        value: Any,
        all_values: Optional[dict[str, Any]] = None,
    ) -> list[FieldError]:
        """Validate one value: rules, then type checks, then custom validators."""
        findings: list[FieldError] = []
        findings.extend(self._check_rules(field, value))

        # Type checks only apply to values that are present
        if not is_empty(value):
            findings.extend(self._check_type(field, value))

        context = ValidationContext(
            field_id=field.id,
            value=value,
            all_values=all_values or {},
            field=field,
        )
        for key in (field.id, field.type.value):
            for validator in self._custom.get(key, []):
                findings.extend(validator(context))
        return findings

    def validate_props(self, schema: EditorSchema, props: dict[str, Any]) -> SchemaValidationResult:
        """Validate every visible field of ``schema`` against ``props``."""
        errors: list[FieldError] = []
        warnings: list[FieldError] = []
        for field in self.visible_fields(schema, props):
            value = get_path(props, field.id)
            for finding in self.validate_field(field, value, props):
                if finding.type == "warning":
                    warnings.append(finding)
                else:
                    errors.append(finding)

        return SchemaValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def _check_rules(self, field: EditorField, value: Any) -> list[FieldError]:
        errors: list[FieldError] = []
        has_required_rule = False
        for rule in field.validation:
            if rule.type == RuleType.REQUIRED:
                has_required_rule = True
                if is_empty(value):
                    errors.append(FieldError(field=field.id, message=rule.message, code="REQUIRED"))
            elif rule.type == RuleType.MIN_LENGTH:
                if isinstance(value, str) and value and len(value) < int(rule.value):
                    errors.append(FieldError(field=field.id, message=rule.message, code="MIN_LENGTH"))
            elif rule.type == RuleType.MAX_LENGTH:
                if isinstance(value, str) and len(value) > int(rule.value):
                    errors.append(FieldError(field=field.id, message=rule.message, code="MAX_LENGTH"))
            elif rule.type == RuleType.PATTERN:
                if isinstance(value, str) and value and not re.search(str(rule.value), value):
                    errors.append(FieldError(field=field.id, message=rule.message, code="PATTERN"))

        if field.required and not has_required_rule and is_empty(value):
            errors.append(
                FieldError(field=field.id, message=f"{field.label} is required", code="REQUIRED")
            )
        return errors

    def _check_type(self, field: EditorField, value: Any) -> list[FieldError]:
        if field.type == FieldType.URL:
            if not isinstance(value, str) or not is_valid_url(value):
                return [FieldError(field=field.id, message="Please enter a valid URL", code="INVALID_URL")]
        elif field.type == FieldType.COLOR:
            if not isinstance(value, str) or not is_valid_color(value):
                return [FieldError(field=field.id, message="Please enter a valid color", code="INVALID_COLOR")]
        elif field.type in (FieldType.NUMBER, FieldType.SLIDER):
            return self._check_number(field, value)
        elif field.type == FieldType.BOOLEAN:
            if not isinstance(value, bool):
                return [FieldError(field=field.id, message=f"{field.label} must be true or false", code="INVALID_BOOLEAN")]
        elif field.type == FieldType.SELECT:
            allowed = [option.value for option in field.options]
            if value not in allowed:
                return [FieldError(field=field.id, message=f"{field.label} has an unsupported value", code="INVALID_OPTION")]
        elif field.type == FieldType.REPEATER:
            if not isinstance(value, list):
                return [FieldError(field=field.id, message=f"{field.label} must be a list", code="INVALID_LIST")]
        elif field.type in (FieldType.IMAGE, FieldType.VIDEO):
            return self._check_media(field, value)
        return []

    def _check_number(self, field: EditorField, value: Any) -> list[FieldError]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return [FieldError(field=field.id, message="Please enter a valid number", code="INVALID_NUMBER")]
        if field.min is not None and value < field.min:
            return [FieldError(
                field=field.id,
                message=f"Value must be at least {_fmt(field.min)}",
                code="MIN_VALUE",
            )]
        if field.max is not None and value > field.max:
            return [FieldError(
                field=field.id,
                message=f"Value must be at most {_fmt(field.max)}",
                code="MAX_VALUE",
            )]
        return []

    def _check_media(self, field: EditorField, value: Any) -> list[FieldError]:
        errors: list[FieldError] = []
        if isinstance(value, str):
            url = value
            descriptor: dict[str, Any] = {}
        elif isinstance(value, dict):
            url = value.get("url") or ""
            descriptor = value
        else:
            return [FieldError(field=field.id, message="Invalid media value", code="INVALID_MEDIA")]

        if not url:
            errors.append(FieldError(field=field.id, message="Media URL is required", code="MEDIA_URL_REQUIRED"))
        elif not is_valid_url(url):
            errors.append(FieldError(field=field.id, message="Please enter a valid media URL", code="INVALID_URL"))

        media_type = descriptor.get("type") or field.type.value
        if descriptor and media_type == "image" and not descriptor.get("alt"):
            errors.append(FieldError(
                field=field.id,
                message="Alt text is required for images (accessibility)",
                code="ALT_TEXT_REQUIRED",
            ))
        if field.type == FieldType.VIDEO and url and not _is_video_url(url):
            errors.append(FieldError(
                field=field.id,
                message="Video should be an MP4, WebM or OGG file, or a YouTube/Vimeo link",
                type="warning",
                code="VIDEO_FORMAT",
            ))
        return errors


def _fmt(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _button_url_required(context: ValidationContext) -> list[FieldError]:
    # Registered on "<button>.url"; the sibling "<button>.text" decides
    button_path = context.field_id.rsplit(".", 1)[0]
    text = get_path(context.all_values, f"{button_path}.text")
    if not is_empty(text) and is_empty(context.value):
        return [FieldError(
            field=context.field_id,
            message="Button URL is required when button text is provided",
            code="DEPENDENT_FIELD_REQUIRED",
        )]
    return []


def build_default_validator() -> SchemaValidator:
    """A validator with the stock custom rules registered."""
    validator = SchemaValidator()
    validator.register_validator("primaryButton.url", _button_url_required)
    validator.register_validator("secondaryButton.url", _button_url_required)
    return validator


_validator: Optional[SchemaValidator] = None


def get_schema_validator() -> SchemaValidator:
    """Get the global schema validator instance."""
    global _validator
    if _validator is None:
        _validator = build_default_validator()
    return _validator
