from __future__ import annotations

import pytest

from rulesets.core.schemas import SchemaValidationError, load_schema, schema_errors, validate_payload


def test_load_bundled_schema_with_or_without_extension() -> None:
    assert load_schema("project-config.schema") == load_schema("project-config.schema.yaml")
    assert load_schema("project-config.schema")["type"] == "object"


def test_missing_schema() -> None:
    with pytest.raises(FileNotFoundError):
        load_schema("does-not-exist")


def test_errors_carry_dotted_paths() -> None:
    schema = {"type": "object", "properties": {"a": {"type": "object", "properties": {"b": {"type": "integer"}}}}}
    assert schema_errors({"a": {"b": "x"}}, schema) == ["a.b: 'x' is not of type 'integer'"]
    assert schema_errors({"a": {"b": 1}}, schema) == []


def test_invalid_schema_is_reported() -> None:
    errors = schema_errors({}, {"type": 12})
    assert len(errors) == 1
    assert errors[0].startswith("Invalid schema:")


def test_validate_payload_raises() -> None:
    validate_payload({"output": "dist"}, "project-config.schema")
    with pytest.raises(SchemaValidationError, match="project-config.schema"):
        validate_payload({"output": 3}, "project-config.schema")
