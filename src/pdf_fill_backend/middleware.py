"""
Request validation step of the fill pipeline.

Validation runs as a FastAPI dependency rather than a global middleware so
it only guards the routes that accept form values, and so it can share the
injected settings and object store with the route itself.
"""

from __future__ import annotations

import logging

from fastapi import Body, Depends

from .configuration import ServiceSettings, get_settings
from .errors import FieldValidationError
from .storage_service import ObjectStore, fetch_object, get_object_store
from .validation import FormValues, parse_schema, validate

logger = logging.getLogger(__name__)

SCHEMA_PHASE = "downloading validation schema"


async def validated_form_values(
    values: FormValues = Body(...),
    settings: ServiceSettings = Depends(get_settings),
    store: ObjectStore = Depends(get_object_store),
) -> FormValues:
    """
    Fetch the validation schema and check the submitted values against it.

    Returns:
        The submitted values, unchanged, when every checked value is allowed

    Raises:
        StorageError: If the schema object cannot be fetched
        SchemaError: If the schema object is malformed
        FieldValidationError: Listing every offending field
    """
    raw = await fetch_object(
        store,
        settings.bucket,
        settings.validation_fields_file_name,
        phase=SCHEMA_PHASE,
        timeout=settings.storage_timeout_seconds,
    )
    schema = parse_schema(raw)
    result = validate(schema, values)
    if not result.is_valid:
        logger.info(f"Rejected submission with {len(result.violations)} invalid field(s)")
        raise FieldValidationError(result.violations)
    return values
