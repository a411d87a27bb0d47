import pytest

from kube_assistant.core.exceptions import ToolValidationError
from kube_assistant.core.tools import SchemaValidator


def test_assert_no_recursive_refs_flat_schema():
    schema = {
        "type": "object",
        "properties": {
            "namespace": {"type": "string"},
            "selector": {
                "type": "object",
                "properties": {"app": {"type": "string"}},
            },
        },
    }
    # Should not raise
    SchemaValidator.assert_no_recursive_refs(schema)


def test_assert_no_recursive_refs_shared_definition_is_fine():
    schema = {
        "$defs": {"Ref": {"type": "object", "properties": {"name": {"type": "string"}}}},
        "properties": {
            "source": {"$ref": "#/$defs/Ref"},
            "target": {"$ref": "#/$defs/Ref"},
        },
    }
    SchemaValidator.assert_no_recursive_refs(schema)


def test_assert_no_recursive_refs_with_recursion():
    schema = {
        "$defs": {
            "OwnerRef": {
                "type": "object",
                "properties": {"owner": {"$ref": "#/$defs/OwnerRef"}},
            }
        },
        "properties": {"root": {"$ref": "#/$defs/OwnerRef"}},
    }
    with pytest.raises(ToolValidationError, match="Recursive structure detected"):
        SchemaValidator.assert_no_recursive_refs(schema)


def test_sanitize_schema_removes_metadata():
    schema = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "$id": "http://example.com/schema",
        "title": "get_podsParams",
        "type": "object",
        "properties": {"namespace": {"type": "string", "title": "Namespace"}},
        "definitions": {"Unused": {}},
    }
    sanitized = SchemaValidator.sanitize_schema(schema)

    assert "$schema" not in sanitized
    assert "$id" not in sanitized
    assert "title" not in sanitized
    assert "definitions" not in sanitized
    assert "title" not in sanitized["properties"]["namespace"]


def test_sanitize_schema_collapses_optional_and_null_default():
    schema = {
        "type": "object",
        "properties": {
            "container": {
                "anyOf": [{"type": "string"}, {"type": "null"}],
                "default": None,
                "description": "Container name",
            }
        },
    }
    field = SchemaValidator.sanitize_schema(schema)["properties"]["container"]

    assert field == {"type": "string", "description": "Container name"}


def test_sanitize_schema_keeps_real_union():
    schema = {"anyOf": [{"type": "string"}, {"type": "integer"}]}

    assert SchemaValidator.sanitize_schema(schema) == schema


def test_sanitize_schema_closes_objects():
    schema = {"type": "object", "properties": {"name": {"type": "string"}}}
    sanitized = SchemaValidator.sanitize_schema(schema)

    assert sanitized["additionalProperties"] is False


def test_sanitize_schema_adds_empty_properties():
    assert SchemaValidator.sanitize_schema({"type": "object"}) == {
        "type": "object",
        "properties": {},
        "additionalProperties": False,
    }
