"""Signed clear flow tying verification, binding and logging together."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from ..constants import ESIGN_FAILURE_REASON
from ..errors import SignatureVerificationFailure, ValidationFailure
from ..models import (
    ActionType,
    AuditEntry,
    ClearResult,
    ElectronicSignature,
    SignaturePayload,
)
from ..store import AuditStore
from .signature import SignatureBinder

logger = logging.getLogger(__name__)


class SignedClearOutcome(BaseModel):
    """Result of :func:`clear_with_signature`."""

    ok: bool
    result: Optional[ClearResult] = None
    signature: Optional[SignaturePayload] = None
    entry: Optional[AuditEntry] = None
    error: Optional[str] = None


def clear_with_signature(
    store: AuditStore,
    binder: SignatureBinder,
    username: str,
    password: str,
    reason: str,
    comment: Optional[str] = None,
) -> SignedClearOutcome:
    """Clear the audit trail under a verified electronic signature.

    Credentials are re-checked, a signature payload is bound to the signer,
    the log is cleared and a DELETE entry carrying the payload is appended so
    the clear stays traceable. A verification failure, or any error raised
    by the verifier, is recorded as a diagnostic entry and reported in the
    outcome; nothing is cleared.

    Raises:
        ValidationFailure: ``reason`` is blank.
    """
    why = (reason or "").strip()
    if not why:
        raise ValidationFailure("Reason is required for this action.", field="reason")

    try:
        identity = binder.verify_credentials(username, password)
    except Exception as exc:
        if isinstance(exc, SignatureVerificationFailure):
            logger.warning("Electronic signature verification failed for %r", username)
        else:
            logger.exception("Identity verifier failed for %r", username)
        store.record_error(
            exc,
            {
                "entity": "esign",
                "reason": ESIGN_FAILURE_REASON,
                "extra": {"username": str(username or "")},
            },
        )
        return SignedClearOutcome(ok=False, error=str(exc))

    payload = binder.create_signature_payload(identity.id, why, comment)
    result = store.clear_logs(
        ElectronicSignature(username=username, password=password, reason=why)
    )
    entry = store.log_action(
        identity.id,
        ActionType.DELETE,
        "audit",
        {"op": "clearLogs", "cleared": result.cleared, "eSign": payload.to_record()},
        reason=why,
    )
    return SignedClearOutcome(ok=True, result=result, signature=payload, entry=entry)
