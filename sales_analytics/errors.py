"""
Exception taxonomy for the analytics library.

Only malformed top-level input is raised. Dirty individual records are
defaulted or skipped by the engine instead.
"""

from typing import Any, Optional


class AnalyticsError(Exception):
    """Base class for analytics errors."""

    code = "ANALYTICS_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AnalyticsError, ValueError):
    """Raised when the dataset or the options are malformed."""

    code = "VALIDATION_ERROR"


class SchemaMismatchError(ValidationError):
    """Raised when a record uses a legacy field name instead of the canonical one."""

    code = "SCHEMA_MISMATCH"

    def __init__(self, location: str, legacy_field: str, canonical_field: str):
        super().__init__(
            message=(
                f"{location} uses legacy field '{legacy_field}'; "
                f"use '{canonical_field}' instead"
            ),
            details={
                "location": location,
                "legacy_field": legacy_field,
                "canonical_field": canonical_field,
            },
        )
        self.legacy_field = legacy_field
        self.canonical_field = canonical_field


class InvalidInputError(AnalyticsError, TypeError):
    """Raised when a helper receives something that is not a record."""

    code = "INVALID_INPUT"
