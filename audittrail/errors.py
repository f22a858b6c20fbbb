"""Error types raised by the audit trail."""

from __future__ import annotations

from typing import Optional


class AuditTrailError(Exception):
    """Base class for audit trail errors."""


class ValidationFailure(AuditTrailError, ValueError):
    """A required field is missing or invalid.

    Raised before any persistence side effect takes place.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class SignatureRequired(ValidationFailure):
    """A destructive operation was attempted without an electronic signature."""

    def __init__(
        self, message: str = "Electronic signature required (username and password)."
    ) -> None:
        super().__init__(message, field="signature")


class ExportUnsupported(AuditTrailError):
    """The requested export format is not recognised."""

    def __init__(self, format: str) -> None:
        super().__init__(f"Unsupported export format: {format}")
        self.format = format


class SignatureVerificationFailure(AuditTrailError):
    """Credentials presented for an electronic signature could not be verified."""


__all__ = [
    "AuditTrailError",
    "ValidationFailure",
    "SignatureRequired",
    "ExportUnsupported",
    "SignatureVerificationFailure",
]
