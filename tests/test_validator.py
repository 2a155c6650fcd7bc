"""Tests for editor field validation and visibility."""

from pagebuilder.editor.schemas import EditorField, EditorSchema
from pagebuilder.editor.validator import (
    FieldError,
    SchemaValidator,
    build_default_validator,
    is_valid_color,
    is_valid_url,
)


def make_field(field_id: str = "value", type: str = "text", **extra) -> EditorField:
    return EditorField.model_validate({"id": field_id, "type": type, "label": "Value", **extra})


def make_schema(fields: list[dict], dependencies: list[dict] | None = None) -> EditorSchema:
    return EditorSchema.model_validate({
        "sections": [{"id": "main", "title": "Main", "fields": fields}],
        "dependencies": dependencies or [],
    })


class TestHelpers:
    def test_urls(self):
        assert is_valid_url("/signup")
        assert is_valid_url("#pricing")
        assert is_valid_url("https://example.com/page?x=1")
        assert is_valid_url("mailto:hello@example.com")
        assert not is_valid_url("not a url")
        assert not is_valid_url("example.com")

    def test_colors(self):
        assert is_valid_color("#fff")
        assert is_valid_color("#3b82f6")
        assert is_valid_color("rgba(0, 0, 0, 0.5)")
        assert is_valid_color("hsl(210, 50%, 40%)")
        assert is_valid_color("transparent")
        assert not is_valid_color("#12345")
        assert not is_valid_color("blurple")


class TestValidateField:
    def setup_method(self):
        self.validator = SchemaValidator()

    def test_required_rule_message(self):
        f = make_field(validation=[{"type": "required", "message": "Title is required"}])
        errors = self.validator.validate_field(f, "   ")
        assert [e.message for e in errors] == ["Title is required"]
        assert errors[0].code == "REQUIRED"

    def test_required_flag_without_rule(self):
        f = make_field(required=True)
        errors = self.validator.validate_field(f, None)
        assert errors[0].message == "Value is required"

    def test_length_rules(self):
        f = make_field(validation=[
            {"type": "minLength", "value": 3, "message": "Too short"},
            {"type": "maxLength", "value": 5, "message": "Too long"},
        ])
        assert [e.message for e in self.validator.validate_field(f, "ab")] == ["Too short"]
        assert [e.message for e in self.validator.validate_field(f, "abcdef")] == ["Too long"]
        assert self.validator.validate_field(f, "abcd") == []

    def test_pattern_rule(self):
        f = make_field(validation=[{"type": "pattern", "value": "^[a-z]+$", "message": "Lowercase only"}])
        assert self.validator.validate_field(f, "Abc")[0].message == "Lowercase only"
        assert self.validator.validate_field(f, "abc") == []

    def test_number_bounds(self):
        f = make_field(type="slider", min=0, max=1)
        assert self.validator.validate_field(f, 1.5)[0].message == "Value must be at most 1"
        assert self.validator.validate_field(f, -1)[0].message == "Value must be at least 0"
        assert self.validator.validate_field(f, 0.4) == []
        assert self.validator.validate_field(f, "0.4")[0].code == "INVALID_NUMBER"

    def test_url_and_color_types(self):
        assert self.validator.validate_field(make_field(type="url"), "nope")[0].code == "INVALID_URL"
        assert self.validator.validate_field(make_field(type="color"), "nope")[0].code == "INVALID_COLOR"

    def test_type_checks_skip_empty_values(self):
        assert self.validator.validate_field(make_field(type="url"), "") == []

    def test_select_must_be_an_option(self):
        f = make_field(type="select", options=[{"label": "Left", "value": "left"}])
        assert self.validator.validate_field(f, "diagonal")[0].code == "INVALID_OPTION"
        assert self.validator.validate_field(f, "left") == []

    def test_image_requires_alt_text(self):
        f = make_field(type="image")
        errors = self.validator.validate_field(f, {"url": "/hero.jpg", "type": "image"})
        assert [e.message for e in errors] == ["Alt text is required for images (accessibility)"]

    def test_video_format_is_a_warning(self):
        f = make_field(type="video")
        findings = self.validator.validate_field(f, {"url": "/clip.gif", "type": "video"})
        assert [(e.type, e.code) for e in findings] == [("warning", "VIDEO_FORMAT")]
        assert self.validator.validate_field(f, {"url": "https://youtu.be/abc", "type": "video"}) == []

    def test_custom_validators_by_id_and_type(self):
        calls = []

        def by_id(context):
            calls.append(("id", context.value))
            return [FieldError(field=context.field_id, message="custom")]

        def by_type(context):
            calls.append(("type", context.value))
            return []

        self.validator.register_validator("value", by_id)
        self.validator.register_validator("text", by_type)
        errors = self.validator.validate_field(make_field(), "x")
        assert [e.message for e in errors] == ["custom"]
        assert calls == [("id", "x"), ("type", "x")]


class TestVisibility:
    def setup_method(self):
        self.validator = SchemaValidator()
        self.schema = make_schema(
            [
                {"id": "background.type", "type": "select", "label": "Type",
                 "options": [{"label": "Color", "value": "color"}, {"label": "Image", "value": "image"}]},
                {"id": "background.color", "type": "color", "label": "Color",
                 "validation": [{"type": "required", "message": "Color is required"}]},
                {"id": "button.text", "type": "text", "label": "Button text"},
                {"id": "button.url", "type": "url", "label": "Button URL",
                 "dependencies": ["button.text"],
                 "validation": [{"type": "required", "message": "URL is required"}]},
            ],
            [{"field": "background.color", "depends_on": "background.type", "value": "color"}],
        )

    def test_rule_shows_field_when_condition_holds(self):
        assert self.validator.is_field_visible(self.schema, "background.color", {"background": {"type": "color"}})
        assert not self.validator.is_field_visible(self.schema, "background.color", {"background": {"type": "image"}})

    def test_plain_dependency_needs_a_value(self):
        assert not self.validator.is_field_visible(self.schema, "button.url", {"button": {"text": ""}})
        assert self.validator.is_field_visible(self.schema, "button.url", {"button": {"text": "Go"}})

    def test_hidden_fields_are_not_validated(self):
        result = self.validator.validate_props(self.schema, {"background": {"type": "image"}})
        assert result.is_valid

    def test_visible_fields_are_validated(self):
        result = self.validator.validate_props(
            self.schema,
            {"background": {"type": "color"}, "button": {"text": "Go"}},
        )
        assert not result.is_valid
        assert result.error_map() == {
            "background.color": "Color is required",
            "button.url": "URL is required",
        }


class TestDefaultValidator:
    def test_button_url_required_when_text_given(self, registry):
        schema = registry.get("hero-centered").editor_schema
        props = registry.get("hero-centered").default_props | {
            "primaryButton": {"text": "Buy", "url": "", "style": "primary"},
        }
        result = build_default_validator().validate_props(schema, props)
        messages = [e.message for e in result.errors if e.field == "primaryButton.url"]
        assert "Button URL is required when button text is provided" in messages

    def test_packaged_defaults_are_valid(self, registry):
        validator = build_default_validator()
        for section in registry.list_all():
            if section.editor_schema is None:
                continue
            result = validator.validate_props(section.editor_schema, section.default_props)
            assert result.is_valid, (section.id, result.errors)
