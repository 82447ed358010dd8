"""Shared schema validation utilities.

Schemas are stored as YAML files under ``rulesets.data/schemas/`` and
validated with ``jsonschema`` (Draft 2020-12). Provider config schemas are
plain dicts returned by ``Provider.config_schema()`` and go through the same
helpers.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from rulesets.core.utils.io import read_yaml
from rulesets.data import get_data_path


class SchemaValidationError(ValueError):
    """Raised when schema validation fails."""

    pass


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema dict.

    Automatically appends ``.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        ValueError: If the schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path = get_data_path("schemas", schema_name)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name}")

    schema = read_yaml(schema_path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def _resolve(schema: Union[str, Mapping[str, Any]]) -> Mapping[str, Any]:
    return load_schema(schema) if isinstance(schema, str) else schema


def schema_errors(payload: Any, schema: Union[str, Mapping[str, Any]]) -> List[str]:
    """Validate ``payload`` and return readable error messages (empty if valid)."""
    resolved = _resolve(schema)
    try:
        Draft202012Validator.check_schema(resolved)
    except SchemaError as exc:
        return [f"Invalid schema: {exc.message}"]
    validator = Draft202012Validator(resolved)

    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: str(list(e.path))):
        if error.path:
            path_str = ".".join(str(p) for p in error.path)
            errors.append(f"{path_str}: {error.message}")
        else:
            errors.append(error.message)
    return errors


def validate_payload(payload: Any, schema: Union[str, Mapping[str, Any]]) -> None:
    """Validate ``payload`` against a schema.

    Raises:
        SchemaValidationError: If validation fails.
    """
    errors = schema_errors(payload, schema)
    if errors:
        name = schema if isinstance(schema, str) else "inline schema"
        raise SchemaValidationError(f"Validation failed against schema '{name}': {'; '.join(errors)}")


__all__ = ["SchemaValidationError", "load_schema", "schema_errors", "validate_payload"]
