"""Tests for editor schema construction and the dependency graph."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from pagebuilder.editor.schemas import EditorSchema, FieldType, build_editor_schema
from pagebuilder.errors import ValidationError


def field(field_id: str, **extra) -> dict:
    return {"id": field_id, "type": "text", "label": field_id.title(), **extra}


def schema(*fields: dict, dependencies: list | None = None) -> dict:
    return {
        "sections": [{"id": "main", "title": "Main", "fields": list(fields)}],
        "dependencies": dependencies or [],
    }


class TestEditorSchemaConstruction:
    def test_fields_in_declaration_order(self):
        s = EditorSchema.model_validate(schema(field("a"), field("b"), field("c")))
        assert s.field_ids() == ["a", "b", "c"]
        assert s.get_field("b").type == FieldType.TEXT
        assert s.get_field("missing") is None

    def test_duplicate_field_ids_rejected(self):
        with pytest.raises(PydanticValidationError, match="Duplicate field id 'a'"):
            EditorSchema.model_validate(schema(field("a"), field("a")))

    def test_dependency_on_undeclared_field_rejected(self):
        with pytest.raises(PydanticValidationError, match="undeclared field 'ghost'"):
            EditorSchema.model_validate(schema(field("a", dependencies=["ghost"])))

    def test_dependency_must_be_declared_earlier(self):
        with pytest.raises(PydanticValidationError, match="not declared before it"):
            EditorSchema.model_validate(schema(field("a", dependencies=["b"]), field("b")))

    def test_cycle_rejected(self):
        with pytest.raises(PydanticValidationError, match="Dependency cycle"):
            EditorSchema.model_validate(schema(
                field("a", dependencies=["b"]),
                field("b", dependencies=["a"]),
            ))

    def test_rule_dependency_counts_toward_graph(self):
        s = EditorSchema.model_validate(schema(
            field("kind", type="select", options=[{"label": "X", "value": "x"}]),
            field("detail"),
            dependencies=[{"field": "detail", "depends_on": "kind", "value": "x"}],
        ))
        assert s.dependency_graph() == {"kind": set(), "detail": {"kind"}}

    def test_select_requires_options(self):
        with pytest.raises(PydanticValidationError, match="must declare options"):
            EditorSchema.model_validate(schema(field("kind", type="select")))

    def test_default_values(self):
        s = EditorSchema.model_validate(schema(field("a", default_value="x"), field("b")))
        assert s.default_values() == {"a": "x"}


class TestBuildEditorSchema:
    def test_valid_definition(self):
        s = build_editor_schema(schema(field("a"), field("b", dependencies=["a"])))
        assert s.field_ids() == ["a", "b"]
        assert build_editor_schema(s) is s

    def test_graph_problems_are_itemized(self):
        with pytest.raises(ValidationError) as exc_info:
            build_editor_schema(schema(field("a"), field("a"), field("b", dependencies=["ghost"])))
        assert str(exc_info.value) == "Invalid editor schema"
        assert exc_info.value.errors == [
            "Duplicate field id 'a'",
            "Field 'b' depends on undeclared field 'ghost'",
        ]

    def test_field_errors_carry_their_location(self):
        with pytest.raises(ValidationError) as exc_info:
            build_editor_schema(schema(field("kind", type="select")))
        [error] = exc_info.value.errors
        assert error.startswith("sections.0.fields.0")
        assert "must declare options" in error


class TestPackagedSchemas:
    def test_every_variant_schema_is_valid(self, registry):
        for section in registry.list_hero_sections():
            assert section.editor_schema is not None, section.id
            assert section.editor_schema.field_ids()
