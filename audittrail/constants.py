"""Shared constants for the audit trail."""

AUDIT_STORAGE_KEY = "auditTrail"
STORAGE_PROBE_KEY = "__storage_probe__"

DEFAULT_APP_VERSION = "0.1.0"
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
DEFAULT_STORAGE_PATH = "audittrail.db"

CSV_HEADERS = (
    "id",
    "timestamp",
    "userId",
    "actionType",
    "entity",
    "reason",
    "correlationId",
    "details",
    "before",
    "after",
    "metadata",
)

ERROR_REASON = "Technical error captured"
ESIGN_FAILURE_REASON = "Electronic signature verification failed"
