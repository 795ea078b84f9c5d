"""
Validation of submitted form values against an allowed-values schema.

The schema object is a JSON object mapping a field name to the array of
values that field may take. Only fields named by the schema are checked; a
submitted field the schema does not mention is passed through, and a schema
field missing from the submission is not required.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from .errors import SchemaError
from .models import ValidationResult, Violation

FieldSchema = Dict[str, Tuple[str, ...]]
FormValues = Dict[str, Optional[str]]

_schema_adapter = TypeAdapter(FieldSchema)


def parse_schema(raw: bytes) -> FieldSchema:
    """
    Parse a validation schema object.

    Raises:
        SchemaError: If the bytes are not a JSON object of string arrays
    """
    try:
        return _schema_adapter.validate_json(raw)
    except ValidationError as exc:
        raise SchemaError(f"Malformed validation schema: {exc}") from exc


def validate(schema: FieldSchema, submitted: Mapping[str, Optional[str]]) -> ValidationResult:
    """
    Collect every submitted value that falls outside its allowed set.

    Violations are listed in schema order, so the result does not depend on
    the order of the submission. A null value is compared as the empty string.
    """
    violations = []
    for field, allowed in schema.items():
        if field not in submitted:
            continue
        value = submitted[field]
        if ("" if value is None else value) not in allowed:
            violations.append(Violation(field=field, value=value, allowed=list(allowed)))
    return ValidationResult(violations=violations)
