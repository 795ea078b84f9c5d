"""
Exception hierarchy for the fill pipeline.

Every failure that can leave a pipeline stage derives from PdfFillBackendError
and carries the HTTP status and the caller-facing message it maps to. The
underlying cause is chained with ``raise ... from`` and only ever logged.
"""

from __future__ import annotations

from typing import List

from .models import Violation


class PdfFillBackendError(Exception):
    status_code = 500
    public_message = "Internal server error"


class ConfigError(PdfFillBackendError):
    """Required configuration is missing or malformed."""

    public_message = "Service is not configured"


class StorageError(PdfFillBackendError):
    """An object could not be fetched from the object store."""

    def __init__(self, bucket: str, object_name: str, reason: str, phase: str = "downloading object"):
        self.bucket = bucket
        self.object_name = object_name
        self.reason = reason
        self.phase = phase
        super().__init__(f"Failed to fetch gs://{bucket}/{object_name}: {reason}")

    @property
    def public_message(self) -> str:  # type: ignore[override]
        return f"Error while {self.phase}"


class SchemaError(PdfFillBackendError):
    """The validation schema object is not a JSON object of string arrays."""

    public_message = "Error while reading validation schema"


class FormError(PdfFillBackendError):
    """The template could not be parsed, filled or serialized."""

    public_message = "Error while filling pdf"


class FieldValidationError(PdfFillBackendError):
    """Submitted values fall outside the schema's allowed sets."""

    status_code = 400
    public_message = "Invalid values found"

    def __init__(self, violations: List[Violation]):
        self.violations = violations
        names = ", ".join(violation.field for violation in violations)
        super().__init__(f"{self.public_message}: {names}")


class FieldError(ValueError):
    """A single field could not be set. Never fatal to a fill."""
