"""Identity verification for electronic signatures."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Dict, Iterable, Optional, Protocol

from ..config import AuditTrailConfig, UserRecord
from ..errors import SignatureVerificationFailure
from ..models import IdentityContext

HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = 390_000


def hash_password(
    password: str, salt: Optional[bytes] = None, iterations: int = HASH_ITERATIONS
) -> str:
    """Return a salted PBKDF2-SHA256 hash in ``scheme$iterations$salt$hash`` form."""
    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def check_password(password: str, encoded: str) -> bool:
    """Return ``True`` when ``password`` matches the ``encoded`` hash."""
    try:
        scheme, iterations, salt_hex, digest_hex = encoded.split("$")
        if scheme != HASH_SCHEME:
            return False
        expected = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations)
        )
    except ValueError:
        return False
    return hmac.compare_digest(expected.hex(), digest_hex)


class IdentityVerifier(Protocol):
    """Validates credentials presented inside a sensitive-action flow."""

    def verify(self, username: str, secret: str) -> IdentityContext:
        """Return the identity for valid credentials.

        Raises:
            SignatureVerificationFailure: the credentials are not valid.
        """


class StaticIdentityVerifier:
    """Verify credentials against a fixed user directory.

    Only password hashes are held. Verification never touches any session
    state.
    """

    def __init__(self, users: Iterable[UserRecord]) -> None:
        self._users: Dict[str, UserRecord] = {user.username: user for user in users}

    @classmethod
    def from_config(cls, config: AuditTrailConfig) -> "StaticIdentityVerifier":
        return cls(config.users)

    def verify(self, username: str, secret: str) -> IdentityContext:
        user = self._users.get(username)
        # Same message for unknown users and wrong passwords.
        if user is None or not check_password(secret, user.password_hash):
            raise SignatureVerificationFailure("Invalid credentials")
        return IdentityContext(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            roles=list(user.roles),
        )
