"""
Schema validation for gt.

Config data is checked against the JSON Schemas shipped in gt/schemas,
both when a file is loaded and before one is written. Every violation is
reported, not just the first.
"""

import json
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema.validators import validator_for


class ValidationError(Exception):
    """Data did not match a schema."""

    def __init__(self, schema_name: str, message: str, path: str | None = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"

# Schema name -> compiled validator
_validators: dict[str, Any] = {}


def _get_validator(schema_name: str):
    """Build (once) a validator for the named schema, using its declared draft."""
    if schema_name not in _validators:
        schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        schema = json.loads(schema_path.read_text())
        cls = validator_for(schema)
        cls.check_schema(schema)
        _validators[schema_name] = cls(schema)
    return _validators[schema_name]


def _format_path(error: jsonschema.ValidationError) -> str:
    return ".".join(str(p) for p in error.absolute_path) or "(root)"


def validate(data: Any, schema_name: str) -> None:
    """
    Validate data against the named schema.

    Raises:
        ValidationError: listing every violation; .path is the first one's location
    """
    errors = sorted(_get_validator(schema_name).iter_errors(data), key=_format_path)
    if not errors:
        return
    if len(errors) == 1:
        raise ValidationError(schema_name, errors[0].message, _format_path(errors[0]))
    details = "; ".join(f"{_format_path(e)}: {e.message}" for e in errors)
    raise ValidationError(schema_name, f"{len(errors)} problems: {details}", _format_path(errors[0]))
