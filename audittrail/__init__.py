"""audittrail: ALCOA+ audit trail with signed destructive operations."""

from .config import AuditTrailConfig, load_config
from .errors import (
    AuditTrailError,
    ExportUnsupported,
    SignatureRequired,
    SignatureVerificationFailure,
    ValidationFailure,
)
from .models import ActionType, AuditEntry, LogFilters, LogPage, SignaturePayload
from .persistence import get_backend
from .security import SignatureBinder, StaticIdentityVerifier, clear_with_signature
from .store import AuditStore, create_audit_store

__version__ = "0.1.0"
__all__ = [
    "ActionType",
    "AuditEntry",
    "AuditStore",
    "AuditTrailConfig",
    "AuditTrailError",
    "ExportUnsupported",
    "LogFilters",
    "LogPage",
    "SignatureBinder",
    "SignaturePayload",
    "SignatureRequired",
    "SignatureVerificationFailure",
    "StaticIdentityVerifier",
    "ValidationFailure",
    "clear_with_signature",
    "create_audit_store",
    "get_backend",
    "load_config",
]
