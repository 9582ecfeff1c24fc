"""Unit tests for ToolDefinition and ToolAnnotation."""

import pytest
from pydantic import ValidationError

from gateway.mcp.schema import ParameterSchema
from gateway.mcp.tool import ToolAnnotation, ToolDefinition


class TestToolAnnotation:
    """Test suite for ToolAnnotation."""

    def test_defaults(self):
        annotation = ToolAnnotation()

        assert annotation.has_side_effects is True
        assert annotation.read_only is False
        assert annotation.destructive is False
        assert annotation.cost_category == "free"
        assert annotation.resource_types == []

    def test_read_only_implies_no_side_effects(self):
        annotation = ToolAnnotation(read_only=True)

        assert annotation.has_side_effects is False

    def test_read_only_with_side_effects_rejected(self):
        with pytest.raises(ValidationError, match="read_only"):
            ToolAnnotation(read_only=True, has_side_effects=True)

    def test_read_only_destructive_rejected(self):
        with pytest.raises(ValidationError):
            ToolAnnotation(read_only=True, destructive=True)

    def test_read_only_tool_factory(self):
        annotation = ToolAnnotation.read_only_tool(resource_types=["server"])

        assert annotation.read_only is True
        assert annotation.has_side_effects is False
        assert annotation.resource_types == ["server"]

    def test_to_wire_uses_hint_names(self):
        wire = ToolAnnotation(destructive=True, custom={"x-team": "infra"}).to_wire()

        assert wire["readOnlyHint"] is False
        assert wire["destructiveHint"] is True
        assert wire["hasSideEffects"] is True
        assert wire["costCategory"] == "free"
        assert wire["x-team"] == "infra"
        assert "resourceTypes" not in wire


class TestToolDefinition:
    """Test suite for ToolDefinition."""

    def test_from_json_schema_preserves_parameter_order(self):
        definition = ToolDefinition.from_json_schema(
            "search",
            "Search things",
            {
                "type": "object",
                "properties": {
                    "query": {"type": "string"},
                    "limit": {"type": "integer", "default": 10},
                    "exact": {"type": "boolean"},
                },
                "required": ["query"],
            },
        )

        assert list(definition.parameters) == ["query", "limit", "exact"]
        assert definition.required_parameters() == ["query"]
        assert definition.get_parameter("limit").default == 10
        assert definition.get_parameter("missing") is None

    def test_default_version_and_annotations(self, echo_definition):
        assert echo_definition.version == "1.0.0"
        assert echo_definition.annotations == ToolAnnotation()
        assert echo_definition.timeout_ms is None

    def test_builder_methods_chain(self):
        annotation = ToolAnnotation.read_only_tool()

        definition = (
            ToolDefinition(name="clock", description="Current time")
            .add_parameter("tz", ParameterSchema(type="string", default="UTC"))
            .set_annotations(annotation)
        )

        assert definition.annotations is annotation
        assert definition.get_parameter("tz").default == "UTC"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ToolDefinition(name="", description="nameless")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ToolDefinition(name="slow", description="slow", timeout_ms=0)

    def test_input_schema_shape(self, echo_definition):
        assert echo_definition.input_schema() == {
            "type": "object",
            "properties": {"message": {"type": "string", "description": "Message to echo"}},
            "required": ["message"],
        }

    def test_input_schema_without_parameters(self):
        definition = ToolDefinition(name="noop", description="Nothing")

        assert definition.input_schema() == {"type": "object", "properties": {}, "required": []}

    def test_to_wire(self, echo_definition):
        wire = echo_definition.to_wire()

        assert wire["name"] == "echo"
        assert wire["description"] == "Echo a message back"
        assert wire["inputSchema"]["required"] == ["message"]
        assert wire["annotations"]["hasSideEffects"] is True
