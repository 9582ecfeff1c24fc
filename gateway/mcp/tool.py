"""
MCP Tool - Tool definitions and annotations.

A ToolDefinition is the published description of one capability:
- Name, description and version
- Ordered parameter map (ParameterSchema per argument)
- ToolAnnotation describing side effects, cost and authorization needs

Definitions are assembled with builder methods at provider registration
time and treated as read-only once they are in a registry.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from .schema import ParameterSchema


class ToolAnnotation(BaseModel):
    """Behavioural metadata advertised with a tool."""

    has_side_effects: bool = Field(default=True, description="Tool changes external state")
    read_only: bool = Field(default=False, description="Tool only reads state")
    destructive: bool = Field(default=False, description="Tool may delete or overwrite data")
    requires_confirmation: bool = Field(default=False, description="Caller should confirm first")
    requires_authentication: bool = Field(default=False, description="Tool needs an authenticated user")
    requires_authorization: bool = Field(default=False, description="Tool needs explicit permission")
    requires_payment: bool = Field(default=False, description="Invocation is billed")
    requires_subscription: bool = Field(default=False, description="Tool needs an active subscription")
    cost_category: str = Field(default="free", description="Cost bucket, e.g. 'free' or 'paid'")
    resource_types: List[str] = Field(default_factory=list, description="Domain resources touched")
    custom: Dict[str, Any] = Field(default_factory=dict, description="Provider-specific extensions")

    @model_validator(mode="before")
    @classmethod
    def _derive_side_effects(cls, data: Any) -> Any:
        # A read-only tool that does not state its side effects has none.
        if isinstance(data, dict) and data.get("read_only") and "has_side_effects" not in data:
            data = {**data, "has_side_effects": False}
        return data

    @model_validator(mode="after")
    def _read_only_is_consistent(self) -> "ToolAnnotation":
        if self.read_only and (self.has_side_effects or self.destructive):
            raise ValueError("read_only tools cannot have side effects or be destructive")
        return self

    @classmethod
    def read_only_tool(cls, **kwargs: Any) -> "ToolAnnotation":
        return cls(read_only=True, has_side_effects=False, destructive=False, **kwargs)

    def to_wire(self) -> Dict[str, Any]:
        """Render as MCP hints plus the gateway's extended fields."""
        wire: Dict[str, Any] = {
            "readOnlyHint": self.read_only,
            "destructiveHint": self.destructive,
            "hasSideEffects": self.has_side_effects,
            "requiresConfirmation": self.requires_confirmation,
            "requiresAuthentication": self.requires_authentication,
            "requiresAuthorization": self.requires_authorization,
            "requiresPayment": self.requires_payment,
            "requiresSubscription": self.requires_subscription,
            "costCategory": self.cost_category,
        }
        if self.resource_types:
            wire["resourceTypes"] = list(self.resource_types)
        for key, value in self.custom.items():
            wire.setdefault(key, value)
        return wire


class ToolDefinition(BaseModel):
    """Tool definition - advertises one callable capability."""

    name: str = Field(..., min_length=1, description="Unique tool identifier (e.g., 'echo')")
    description: str = Field(..., description="Tool purpose and use cases")
    version: str = Field(default="1.0.0", description="Semantic version")
    parameters: Dict[str, ParameterSchema] = Field(
        default_factory=dict,
        description="Arguments in declaration order",
    )
    annotations: ToolAnnotation = Field(default_factory=ToolAnnotation)
    timeout_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Per-tool deadline; falls back to the gateway default",
    )

    @classmethod
    def from_json_schema(
        cls,
        name: str,
        description: str,
        schema: Dict[str, Any],
        annotations: Optional[ToolAnnotation] = None,
    ) -> "ToolDefinition":
        """
        Create a definition from a provider's JSON Schema.

        Args:
            name: Tool name
            description: Tool description
            schema: Object schema with ``properties`` and ``required``
            annotations: Optional annotations (defaults apply when omitted)
        """
        definition = cls(name=name, description=description)
        required = schema.get("required") or []
        for param_name, fragment in (schema.get("properties") or {}).items():
            definition.add_parameter(
                param_name,
                ParameterSchema.from_json_schema(fragment, required=param_name in required),
            )
        if annotations is not None:
            definition.set_annotations(annotations)
        return definition

    def add_parameter(self, name: str, schema: ParameterSchema) -> "ToolDefinition":
        self.parameters[name] = schema
        return self

    def set_annotations(self, annotations: ToolAnnotation) -> "ToolDefinition":
        self.annotations = annotations
        return self

    def get_parameter(self, name: str) -> Optional[ParameterSchema]:
        return self.parameters.get(name)

    def required_parameters(self) -> List[str]:
        return [name for name, schema in self.parameters.items() if schema.required]

    def input_schema(self) -> Dict[str, Any]:
        """Object schema describing the tool's arguments."""
        return {
            "type": "object",
            "properties": {
                name: param.to_json_schema() for name, param in self.parameters.items()
            },
            "required": self.required_parameters(),
        }

    def to_wire(self) -> Dict[str, Any]:
        """Entry of a tools/list response."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
            "annotations": self.annotations.to_wire(),
        }
