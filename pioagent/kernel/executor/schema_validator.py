"""SchemaValidator: JSON Schema validation for tool arguments and CLI output.

Validates against JSON Schema Draft 7. Unlike a fail-fast check, every mismatch is
collected so callers can report each offending field.
"""

from typing import Any

import jsonschema
from jsonschema import Draft7Validator

from pioagent.kernel.errors import SchemaDefinitionError, SchemaValidationFailedError


def _dotted(parts: Any) -> str:
    return ".".join(str(p) for p in parts)


class SchemaValidator:
    """Validates data against JSON Schema."""

    def iter_mismatches(self, data: Any, schema: dict[str, Any]) -> list[dict[str, str]]:
        """Return one entry per violation, ordered by field path.

        Raises:
            SchemaDefinitionError: If the schema itself is malformed
        """
        try:
            Draft7Validator.check_schema(schema)
        except jsonschema.exceptions.SchemaError as e:
            raise SchemaDefinitionError(f"Schema is malformed: {e.message}") from e

        validator = Draft7Validator(schema)
        errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        return [
            {
                "path": _dotted(error.path),
                "message": error.message,
                "schema_path": _dotted(error.schema_path),
            }
            for error in errors
        ]

    def validate(self, data: Any, schema: dict[str, Any], output: str = "") -> None:
        """Validate data against JSON Schema.

        Args:
            data: Decoded document to validate
            schema: JSON Schema to validate against
            output: Raw text the document was decoded from, kept as a diagnostic sample

        Raises:
            SchemaValidationFailedError: If the data does not conform
            SchemaDefinitionError: If the schema itself is malformed
        """
        mismatches = self.iter_mismatches(data, schema)
        if not mismatches:
            return

        first = mismatches[0]
        location = f" at '{first['path']}'" if first["path"] else ""
        raise SchemaValidationFailedError(
            f"Document does not match expected schema{location}: {first['message']}",
            errors=mismatches,
            output=output,
        )
