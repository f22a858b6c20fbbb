"""Electronic signature binding for destructive operations."""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Callable, Optional

from ..errors import SignatureVerificationFailure, ValidationFailure
from ..models import IdentityContext, SignaturePayload
from .identity import IdentityVerifier

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime) -> str:
    """Format ``value`` as a UTC ISO-8601 string with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def compute_signature_hash(
    signer_id: str, iso_ts: str, reason: str = "", comment: str = ""
) -> str:
    """Return the SHA-256 hex digest binding signer, motive and time.

    The components are encoded as a JSON array so that no choice of values
    can shift content from one component into another.
    """
    canonical = json.dumps(
        [str(signer_id), str(reason), str(comment), str(iso_ts)],
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SignatureBinder:
    """Creates signature payloads and re-checks identity for sensitive actions.

    The binding ties signer identity, reason, comment and timestamp into one
    digest. It proves the payload was not altered after signing; it does not
    prove authenticity on its own, since anyone can recompute the digest.
    """

    def __init__(self, verifier: IdentityVerifier, clock: Optional[Clock] = None) -> None:
        self._verifier = verifier
        self._clock = clock or _utcnow

    def create_signature_payload(
        self,
        user_id: str,
        reason: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> SignaturePayload:
        """Create a signature payload for binding to an audit entry.

        Raises:
            ValidationFailure: ``user_id`` is blank.
        """
        signer_id = str(user_id or "").strip()
        if not signer_id:
            raise ValidationFailure("Invalid signerId", field="signerId")

        stamp = iso_timestamp(self._clock())
        return SignaturePayload(
            signer_id=signer_id,
            iso_timestamp=stamp,
            signature_hash=compute_signature_hash(
                signer_id, stamp, reason or "", comment or ""
            ),
            reason=str(reason) if reason else None,
            comment=str(comment) if comment else None,
        )

    def verify_payload(self, payload: SignaturePayload) -> bool:
        """Return ``True`` when ``payload`` still matches its digest."""
        expected = compute_signature_hash(
            payload.signer_id,
            payload.iso_timestamp,
            payload.reason or "",
            payload.comment or "",
        )
        return hmac.compare_digest(expected, payload.signature_hash)

    def verify_credentials(self, username: str, secret: str) -> IdentityContext:
        """Verify credentials without touching any ambient session.

        Raises:
            SignatureVerificationFailure: input is blank or the verifier
                rejects the credentials.
        """
        user = username.strip() if isinstance(username, str) else ""
        password = secret if isinstance(secret, str) else ""
        if not user or not password:
            raise SignatureVerificationFailure("Invalid input")
        return self._verifier.verify(user, password)
