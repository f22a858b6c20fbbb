import pytest

from audittrail.config import AuditTrailConfig, UserRecord
from audittrail.errors import SignatureVerificationFailure
from audittrail.security import StaticIdentityVerifier, check_password, hash_password


def test_hash_password_is_salted():
    first = hash_password("s3cret", iterations=1000)
    second = hash_password("s3cret", iterations=1000)

    assert first != second
    assert first.startswith("pbkdf2_sha256$1000$")
    assert check_password("s3cret", first)
    assert check_password("s3cret", second)
    assert not check_password("s3cret!", first)


@pytest.mark.parametrize(
    "encoded",
    ["", "plain", "md5$1$00$00", "pbkdf2_sha256$many$00$00", "pbkdf2_sha256$1000$zz$00"],
)
def test_check_password_rejects_malformed_hashes(encoded):
    assert check_password("anything", encoded) is False


def test_static_verifier_from_config():
    config = AuditTrailConfig(
        users=[
            UserRecord(
                id="u-viewer",
                username="viewer",
                display_name="Read-Only Viewer",
                roles=["viewer"],
                password_hash=hash_password("viewer123", iterations=1000),
            )
        ]
    )
    verifier = StaticIdentityVerifier.from_config(config)

    identity = verifier.verify("viewer", "viewer123")

    assert identity.id == "u-viewer"
    assert identity.display_name == "Read-Only Viewer"
    with pytest.raises(SignatureVerificationFailure, match="Invalid credentials"):
        verifier.verify("viewer", "admin123")
