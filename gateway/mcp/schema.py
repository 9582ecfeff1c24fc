"""
Parameter schema model and argument validation.

ParameterSchema mirrors the subset of JSON Schema that tools declare for
their arguments. The validator enforces only the modeled keywords (type,
required, default, enum, properties, items); anything else a provider puts
in a schema is kept in ``additional`` and passed through on the wire.

Validation walks the declared parameters depth-first in declaration order.
Each value's type and enum are checked with jsonschema; the first violation
stops the walk and is raised as a SchemaViolation carrying its field path.
The result is a copy with defaults filled in and integral floats declared
as ``integer`` converted to int:

    schema = ParameterSchema(type="integer", default=3)
    validate_value(schema, MISSING, "retries")   # -> 3
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError as JsonSchemaValidationError
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import (
    EnumViolation,
    MissingRequiredParameter,
    SchemaViolation,
    TypeMismatch,
    UnknownParameter,
)

ParamType = Literal["string", "number", "integer", "boolean", "object", "array"]

PARAM_TYPES = ("string", "number", "integer", "boolean", "object", "array")

# Keywords ParameterSchema models explicitly; everything else goes to ``additional``.
_MODELED_KEYWORDS = frozenset(
    {"description", "type", "default", "enum", "properties", "items", "required"}
)


class _Missing:
    """Marker for an argument that was not supplied."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def json_type_name(value: Any) -> str:
    """Return the JSON kind of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "integer" if value.is_integer() else "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_type(param_type: str, value: Any) -> bool:
    kind = json_type_name(value)
    if param_type == "number":
        return kind in ("integer", "number")
    return kind == param_type


class ParameterSchema(BaseModel):
    """Schema for one tool parameter."""

    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = Field(None, description="Human readable description")
    param_type: ParamType = Field(..., alias="type", description="JSON kind of the value")
    required: bool = Field(False, description="Whether callers must supply the value")
    default: Optional[Any] = Field(None, description="Value substituted when omitted")
    enum_values: List[Any] = Field(
        default_factory=list,
        alias="enum",
        description="Allowed values (empty = unconstrained)",
    )
    properties: Dict[str, "ParameterSchema"] = Field(
        default_factory=dict,
        description="Nested parameters of an object",
    )
    items: Optional["ParameterSchema"] = Field(None, description="Element schema of an array")
    additional: Dict[str, Any] = Field(
        default_factory=dict,
        description="Unmodeled schema keywords, passed through verbatim",
    )

    @model_validator(mode="after")
    def _enum_values_match_type(self) -> "ParameterSchema":
        for allowed in self.enum_values:
            if not matches_type(self.param_type, allowed):
                raise ValueError(
                    f"enum value {allowed!r} is not of type '{self.param_type}'"
                )
        return self

    @classmethod
    def from_json_schema(cls, schema: Dict[str, Any], required: bool = False) -> "ParameterSchema":
        """Build a ParameterSchema from a JSON Schema fragment."""
        raw_type = schema.get("type", "string")
        if isinstance(raw_type, list):
            # ["string", "null"] style unions collapse to their first non-null kind
            non_null = [kind for kind in raw_type if kind != "null"]
            raw_type = non_null[0] if non_null else "string"

        own_required = schema.get("required")
        if isinstance(own_required, bool):
            required = required or own_required
        required_names = own_required if isinstance(own_required, list) else []

        properties = {
            name: cls.from_json_schema(fragment, required=name in required_names)
            for name, fragment in (schema.get("properties") or {}).items()
            if isinstance(fragment, dict)
        }
        items = schema.get("items")

        return cls(
            description=schema.get("description"),
            param_type=raw_type,
            required=required,
            default=schema.get("default"),
            enum_values=list(schema.get("enum") or []),
            properties=properties,
            items=cls.from_json_schema(items) if isinstance(items, dict) else None,
            additional={
                key: value for key, value in schema.items() if key not in _MODELED_KEYWORDS
            },
        )

    def to_json_schema(self) -> Dict[str, Any]:
        """Render the wire JSON Schema fragment."""
        fragment: Dict[str, Any] = {"type": self.param_type}
        if self.description is not None:
            fragment["description"] = self.description
        if self.default is not None:
            fragment["default"] = self.default
        if self.enum_values:
            fragment["enum"] = list(self.enum_values)
        if self.properties:
            fragment["properties"] = {
                name: prop.to_json_schema() for name, prop in self.properties.items()
            }
            required = [name for name, prop in self.properties.items() if prop.required]
            if required:
                fragment["required"] = required
        if self.items is not None:
            fragment["items"] = self.items.to_json_schema()
        for key, value in self.additional.items():
            fragment.setdefault(key, value)
        return fragment

    def node_schema(self) -> Dict[str, Any]:
        """Render the keywords jsonschema checks on the value itself (type and enum)."""
        fragment: Dict[str, Any] = {"type": self.param_type}
        if self.enum_values:
            fragment["enum"] = list(self.enum_values)
        return fragment


ParameterSchema.model_rebuild()


def validate_value(
    schema: ParameterSchema,
    value: Any = MISSING,
    path: str = "",
    strict: bool = False,
) -> Any:
    """
    Validate one value against its schema.

    Args:
        schema: Declared parameter schema
        value: Candidate value, or MISSING when the caller omitted it
        path: Field path used in violation messages (``config.tags[2]``)
        strict: Reject keys an object schema does not declare

    Returns:
        The value with defaults filled in, or MISSING for an omitted optional
        parameter without default.

    Raises:
        SchemaViolation: First violation found
    """
    if value is None and not schema.required:
        value = MISSING

    if value is MISSING:
        if schema.default is not None:
            return copy.deepcopy(schema.default)
        if schema.required:
            raise MissingRequiredParameter(path)
        return MISSING

    return _validate_node(schema, value, path, strict)


def validate_arguments(
    parameters: Dict[str, ParameterSchema],
    arguments: Dict[str, Any],
    strict: bool = False,
) -> Dict[str, Any]:
    """Validate a tool's argument object against its parameter map."""
    return _validate_properties(parameters, arguments, "", strict, closed=strict)


def _validate_node(schema: ParameterSchema, value: Any, path: str, strict: bool) -> Any:
    _check(schema.node_schema(), value, path)

    if schema.param_type == "integer" and isinstance(value, float):
        return int(value)
    if schema.param_type == "object":
        return _validate_properties(
            schema.properties, value, path, strict, closed=strict and bool(schema.properties)
        )
    if schema.param_type == "array" and schema.items is not None:
        return [
            _validate_node(schema.items, element, _join_path(path, [index]), strict)
            for index, element in enumerate(value)
        ]
    return value


def _validate_properties(
    properties: Dict[str, ParameterSchema],
    obj: Dict[str, Any],
    path: str,
    strict: bool,
    closed: bool,
) -> Dict[str, Any]:
    # declared order, stopping at the first violation
    result = dict(obj)
    for name, prop in properties.items():
        value = validate_value(prop, obj.get(name, MISSING), _join_path(path, [name]), strict)
        if value is MISSING:
            result.pop(name, None)
        else:
            result[name] = value

    if closed:
        for key in obj:
            if key not in properties:
                raise UnknownParameter(_join_path(path, [key]))
    return result


def _check(node_schema: Dict[str, Any], instance: Any, path: str) -> None:
    error = next(iter(Draft202012Validator(node_schema).iter_errors(instance)), None)
    if error is not None:
        raise _to_violation(error, path)


def _to_violation(error: JsonSchemaValidationError, path: str) -> SchemaViolation:
    if error.validator == "type":
        return TypeMismatch(path, error.validator_value, json_type_name(error.instance))
    if error.validator == "enum":
        return EnumViolation(path, list(error.validator_value))
    return SchemaViolation(path, error.message)


def _join_path(base: str, parts: Iterable[Union[str, int]]) -> str:
    path = base
    for part in parts:
        if isinstance(part, int):
            path = f"{path}[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path
