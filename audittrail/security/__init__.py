"""Electronic signatures and identity verification."""

from .esign import SignedClearOutcome, clear_with_signature
from .identity import (
    IdentityVerifier,
    StaticIdentityVerifier,
    check_password,
    hash_password,
)
from .signature import SignatureBinder, compute_signature_hash

__all__ = [
    "IdentityVerifier",
    "StaticIdentityVerifier",
    "SignatureBinder",
    "SignedClearOutcome",
    "check_password",
    "clear_with_signature",
    "compute_signature_hash",
    "hash_password",
]
