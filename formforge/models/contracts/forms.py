"""
Form contract models for formforge.

Components themselves stay plain JSON dicts (the form-js document is the
source of truth); these models validate the structured pieces that cross the
engine boundary and describe engine results.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from formforge.core.constants import DEFAULT_COLUMNS
from formforge.models.enums import HintLevel, IssueSeverity


# ==================== COMPONENT SUB-OBJECTS ====================


class FormValidation(BaseModel):
    """Validation rules for a form component"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    required: bool | None = None
    min_length: int | None = Field(default=None, alias="minLength", ge=0)
    max_length: int | None = Field(default=None, alias="maxLength", ge=0)
    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    pattern_error_message: str | None = Field(default=None, alias="patternErrorMessage")
    validation_type: str | None = Field(default=None, alias="validationType")
    validation_error: str | None = Field(
        default=None, alias="validationError", description="Custom error message shown when validation fails")

    @field_validator("validation_type")
    @classmethod
    def validate_validation_type(cls, v: str | None) -> str | None:
        if v is not None and v not in ("email", "phone"):
            raise ValueError("validationType must be 'email' or 'phone'")
        return v


class FormConditional(BaseModel):
    """Conditional visibility; the hide expression is opaque FEEL text."""
    hide: str | None = Field(default=None, description="When truthy the field is hidden")


class FormLayout(BaseModel):
    """Grid layout options for a form component"""
    columns: int | None = Field(
        default=None, ge=1, le=DEFAULT_COLUMNS, description="Column span (1-16)")
    row: str | None = Field(
        default=None, description="Row identifier - components sharing a row sit side-by-side")


class FormOptionValue(BaseModel):
    """A single static option (select, radio, checklist, taglist)"""
    label: str = Field(..., min_length=1)
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Any:
        # form-js stores option values as strings
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


# ==================== FORM SCHEMA ====================


def _check_component_lists(components: list[dict[str, Any]], path: str) -> None:
    for i, comp in enumerate(components):
        children = comp.get("components")
        if children is None:
            continue
        child_path = f"{path}[{i}].components"
        if not isinstance(children, list) or not all(isinstance(child, dict) for child in children):
            raise ValueError(f"{child_path} must be a list of component objects")
        _check_component_lists(children, child_path)


class FormSchema(BaseModel):
    """Top-level form-js schema, used to validate imports"""
    model_config = ConfigDict(extra="allow")

    type: str = Field(default="default")
    id: str | None = None
    schema_version: int | None = Field(default=None, alias="schemaVersion")
    components: list[dict[str, Any]] = Field(..., description="Root component list")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v != "default":
            raise ValueError(f"Unsupported schema type: {v}")
        return v

    @field_validator("components")
    @classmethod
    def validate_nested_components(cls, v: list[dict[str, Any]]) -> list[dict[str, Any]]:
        _check_component_lists(v, "components")
        return v


class FormState(BaseModel):
    """In-memory state for a single form"""
    form_schema: dict[str, Any]
    name: str | None = None
    version: int = Field(default=0, description="Bumped on every successful mutation")
    hint_level: HintLevel = HintLevel.FULL


# ==================== VALIDATOR RESULTS ====================


class ValidationIssue(BaseModel):
    """A single validator finding"""
    severity: IssueSeverity
    message: str
    component_id: str | None = None
    path: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ValidationResult(BaseModel):
    """Outcome of validating a form schema"""
    valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]


# ==================== BATCH ====================


class BatchOperation(BaseModel):
    """One record of a batch: the operation name and its arguments"""
    model_config = ConfigDict(extra="forbid")

    tool: str = Field(..., min_length=1, description="Operation (tool) name")
    args: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def default_args(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("args") is None:
            data = {**data, "args": {}}
        return data
