"""Editor schema models - declarative form descriptions for section variants.

An EditorSchema groups editable fields into sections. Each field addresses a
value in the section's properties by dot-path, carries validation rules, and
may be shown or hidden depending on other fields' values.

Schemas are authored once per variant (inside the variant's definition file)
and are immutable at runtime. Structural invariants are checked when the
schema is constructed:
- field ids are unique
- dependencies reference declared fields only
- a field depends only on fields declared before it
- the dependency graph is acyclic

build_editor_schema() is the checked entry point: it raises the engine's
ValidationError with one entry per problem.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from pagebuilder.errors import ValidationError


class FieldType(str, Enum):
    """Closed set of editor control types."""
    TEXT = "text"
    TEXTAREA = "textarea"
    URL = "url"
    BOOLEAN = "boolean"
    SELECT = "select"
    COLOR = "color"
    SLIDER = "slider"
    NUMBER = "number"
    IMAGE = "image"
    VIDEO = "video"
    REPEATER = "repeater"


class RuleType(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"


class DependencyCondition(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"


class DependencyAction(str, Enum):
    SHOW = "show"
    HIDE = "hide"


class ValidationRule(BaseModel):
    """A single validation rule with the message shown when it fails."""

    type: RuleType
    value: Any = None
    message: str


class FieldOption(BaseModel):
    """An option of a select field."""

    label: str
    value: Any


class EditorField(BaseModel):
    """One editable control bound to a dot-path in the properties."""

    id: str = Field(..., description="Dot-path into the property bag, e.g. 'content.buttons.0.text'")
    type: FieldType
    label: str
    placeholder: str = ""
    help_text: str = ""
    required: bool = False
    validation: list[ValidationRule] = Field(default_factory=list)
    options: list[FieldOption] = Field(default_factory=list)
    dependencies: list[str] = Field(
        default_factory=list,
        description="Field ids whose values control this field's visibility",
    )
    default_value: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None

    @model_validator(mode="after")
    def _check_control_config(self) -> "EditorField":
        if self.type == FieldType.SELECT and not self.options:
            raise ValueError(f"Select field '{self.id}' must declare options")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Field '{self.id}' has min greater than max")
        return self


class EditorSection(BaseModel):
    """A collapsible group of fields in the editor form."""

    id: str
    title: str
    icon: str = ""
    description: str = ""
    collapsible: bool = True
    default_expanded: bool = True
    fields: list[EditorField] = Field(default_factory=list)


class FieldDependency(BaseModel):
    """Show or hide ``field`` depending on the value of ``depends_on``."""

    field: str
    depends_on: str
    condition: DependencyCondition = DependencyCondition.EQUALS
    value: Any = None
    action: DependencyAction = DependencyAction.SHOW


class DependencyGraphError(ValueError):
    """Structural problems found in a schema's fields and dependencies."""

    def __init__(self, problems: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class EditorSchema(BaseModel):
    """Declarative editor form for one section variant."""

    sections: list[EditorSection] = Field(default_factory=list)
    dependencies: list[FieldDependency] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_dependency_graph(self) -> "EditorSchema":
        problems = dependency_problems(self)
        if problems:
            raise DependencyGraphError(problems)
        return self

    def fields(self) -> list[EditorField]:
        """All fields in declaration order."""
        return [f for section in self.sections for f in section.fields]

    def field_ids(self) -> list[str]:
        return [f.id for f in self.fields()]

    def get_field(self, field_id: str) -> Optional[EditorField]:
        for f in self.fields():
            if f.id == field_id:
                return f
        return None

    def rules_for(self, field_id: str) -> list[FieldDependency]:
        """Dependency rules that target ``field_id``."""
        return [r for r in self.dependencies if r.field == field_id]

    def dependency_graph(self) -> dict[str, set[str]]:
        """Map each field id to the ids it depends on."""
        return _build_graph(self)

    def default_values(self) -> dict[str, Any]:
        """Field id -> declared default, for fields that declare one."""
        return {f.id: f.default_value for f in self.fields() if f.default_value is not None}


def _build_graph(schema: EditorSchema) -> dict[str, set[str]]:
    graph: dict[str, set[str]] = {}
    for f in schema.fields():
        graph.setdefault(f.id, set()).update(f.dependencies)
    for rule in schema.dependencies:
        graph.setdefault(rule.field, set()).add(rule.depends_on)
    return graph


def dependency_problems(schema: EditorSchema) -> list[str]:
    """List structural problems of a schema's fields and dependency graph."""
    problems: list[str] = []
    ids = [f.id for section in schema.sections for f in section.fields]
    positions: dict[str, int] = {}
    for index, field_id in enumerate(ids):
        if field_id in positions:
            problems.append(f"Duplicate field id '{field_id}'")
        else:
            positions[field_id] = index

    graph = _build_graph(schema)
    for field_id, parents in graph.items():
        if field_id not in positions:
            problems.append(f"Dependency rule targets undeclared field '{field_id}'")
            continue
        for parent in sorted(parents):
            if parent not in positions:
                problems.append(f"Field '{field_id}' depends on undeclared field '{parent}'")
            elif positions[parent] >= positions[field_id]:
                problems.append(
                    f"Field '{field_id}' depends on '{parent}', which is not declared before it"
                )

    cycle = _find_cycle(graph)
    if cycle:
        problems.append(f"Dependency cycle: {' -> '.join(cycle)}")
    return problems


def _find_cycle(graph: dict[str, set[str]]) -> Optional[list[str]]:
    """Return one cycle in the graph as a path, or None."""
    WHITE, GREY, BLACK = 0, 1, 2
    color = {node: WHITE for node in graph}
    stack: list[str] = []

    def visit(node: str) -> Optional[list[str]]:
        color[node] = GREY
        stack.append(node)
        for parent in sorted(graph.get(node, ())):
            state = color.get(parent, WHITE)
            if state == GREY:
                return stack[stack.index(parent):] + [parent]
            if state == WHITE and parent in graph:
                found = visit(parent)
                if found:
                    return found
        stack.pop()
        color[node] = BLACK
        return None

    for node in sorted(graph):
        if color[node] == WHITE:
            found = visit(node)
            if found:
                return found
    return None


def format_pydantic_errors(exc: PydanticValidationError, root: str = "schema") -> list[str]:
    """One line per pydantic error; dependency graph problems are split out."""
    lines: list[str] = []
    for err in exc.errors():
        cause = (err.get("ctx") or {}).get("error")
        if isinstance(cause, DependencyGraphError):
            lines.extend(cause.problems)
            continue
        location = ".".join(str(part) for part in err["loc"]) or root
        lines.append(f"{location}: {err['msg']}")
    return lines


def build_editor_schema(data: Any) -> EditorSchema:
    """Validate an editor schema definition.

    Raises ValidationError with an itemized errors list.
    """
    if isinstance(data, EditorSchema):
        return data
    try:
        return EditorSchema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid editor schema", format_pydantic_errors(e)) from e
