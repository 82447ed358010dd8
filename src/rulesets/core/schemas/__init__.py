"""JSON Schema helpers."""
from .validation import SchemaValidationError, load_schema, schema_errors, validate_payload

__all__ = ["SchemaValidationError", "load_schema", "schema_errors", "validate_payload"]
