import pytest

from audittrail.details import (
    ClearLogsDetails,
    ComputeDetails,
    DetailRecord,
    ErrorDetails,
    OpaqueDetails,
    normalize_details,
    record_type,
    register_details,
)
from audittrail.errors import ValidationFailure
from audittrail.models import ActionType, SignaturePayload
from audittrail.persistence import InMemoryBackend
from audittrail.store import AuditStore


def test_known_combinations_resolve_to_typed_records():
    assert record_type("audit", ActionType.DELETE) is ClearLogsDetails
    assert record_type("calculator", ActionType.UPDATE) is ComputeDetails
    assert record_type("esign", ActionType.READ) is ErrorDetails
    assert record_type("audit", ActionType.READ) is OpaqueDetails


def test_typed_details_on_entry():
    store = AuditStore(InMemoryBackend())
    payload = SignaturePayload(
        signer_id="u1",
        iso_timestamp="2026-03-01T09:30:15.123Z",
        signature_hash="ab" * 32,
        reason="cleanup",
    )
    entry = store.log_action(
        "u1",
        "DELETE",
        "audit",
        {"op": "clearLogs", "cleared": 3, "eSign": payload},
        reason="cleanup",
    )

    details = entry.typed_details()

    assert isinstance(details, ClearLogsDetails)
    assert details.cleared == 3
    assert details.e_sign == payload
    assert entry.details["eSign"]["signerId"] == "u1"


def test_unknown_keys_are_preserved():
    details = normalize_details(
        "calculator", ActionType.CREATE, {"operation": "compute", "precision": 4}
    )

    assert details == {"operation": "compute", "precision": 4}


def test_opaque_details_pass_through():
    store = AuditStore(InMemoryBackend())
    entry = store.log_action("u1", "READ", "settings", {"theme": "dark"})

    typed = entry.typed_details()
    assert isinstance(typed, OpaqueDetails)
    assert typed.to_details() == {"theme": "dark"}


def test_detail_record_instances_are_accepted():
    details = normalize_details(
        "calculator",
        ActionType.CREATE,
        ComputeDetails(operation="compute", operator_symbol="+"),
    )

    assert details == {"operation": "compute", "operatorSymbol": "+"}


def test_invalid_known_field_is_rejected():
    with pytest.raises(ValidationFailure) as excinfo:
        normalize_details("calculator", ActionType.CREATE, {"operands": [1, 2]})

    assert excinfo.value.field == "details"


def test_register_details(monkeypatch):
    class ThemeDetails(DetailRecord):
        theme: str

    monkeypatch.setattr(
        "audittrail.details.DETAIL_RECORDS",
        {},
    )
    register_details("settings", ActionType.UPDATE, ThemeDetails)

    with pytest.raises(ValidationFailure):
        normalize_details("settings", ActionType.UPDATE, {"color": "blue"})
    assert normalize_details("settings", ActionType.UPDATE, {"theme": "dark"}) == {
        "theme": "dark"
    }


def test_registered_details_are_stored_as_given():
    store = AuditStore(InMemoryBackend())
    details = {
        "op": "clearLogs",
        "cleared": 5,
        "eSign": {
            "signerId": "u1",
            "isoTimestamp": "2026-03-01T09:30:15.123Z",
            "signatureHash": "ab" * 32,
            "reason": "cleanup",
            "method": "password",
        },
        "ticket": "CHG-42",
    }

    entry = store.log_action("u1", "DELETE", "audit", details, reason="cleanup")

    assert entry.details == details
    assert store.get_logs().items[0].details == details


def test_known_fields_are_not_coerced():
    store = AuditStore(InMemoryBackend())

    with pytest.raises(ValidationFailure) as excinfo:
        store.log_action(
            "u1", "DELETE", "audit", {"op": "clearLogs", "cleared": "5"}, reason="cleanup"
        )

    assert excinfo.value.field == "details"
    assert store.count() == 0


def test_untyped_normalization_skips_record_check():
    details = normalize_details(
        "error", ActionType.READ, {"name": "ValueError", "message": 5}, typed=False
    )

    assert details == {"name": "ValueError", "message": 5}
