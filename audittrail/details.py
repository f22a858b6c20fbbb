"""Typed detail records keyed by entity and action type.

Each known ``(entity, actionType)`` combination has a pydantic record
describing the shape of ``AuditEntry.details``. All fields are optional and
unknown keys are kept, so entries written by newer callers still load.
Combinations without a registered record are read as :class:`OpaqueDetails`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import ValidationFailure
from .models import ActionType, SignaturePayload


class DetailRecord(BaseModel):
    """Base class for typed detail records."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_details(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class OpaqueDetails(DetailRecord):
    """Free key/value details for unregistered combinations."""


class ClearLogsDetails(DetailRecord):
    """Details of a signed clear of the audit trail."""

    op: Optional[str] = None
    cleared: Optional[int] = None
    e_sign: Optional[SignaturePayload] = Field(default=None, alias="eSign")


class ComputeDetails(DetailRecord):
    """Details of a calculator computation."""

    operation: Optional[str] = None
    operands: Optional[Dict[str, Any]] = None
    operator: Optional[str] = None
    operator_symbol: Optional[str] = Field(default=None, alias="operatorSymbol")
    result: Any = None


class ConversionDetails(DetailRecord):
    """Details of a unit conversion."""

    operation: Optional[str] = None
    category: Optional[str] = None
    units: Optional[Dict[str, Any]] = None
    input: Any = None
    output: Any = None


class ErrorDetails(DetailRecord):
    """Diagnostic details of a captured technical error."""

    name: Optional[str] = None
    message: Optional[str] = None
    stack: Optional[str] = None


DETAIL_RECORDS: Dict[Tuple[str, ActionType], Type[DetailRecord]] = {
    ("audit", ActionType.DELETE): ClearLogsDetails,
    ("calculator", ActionType.CREATE): ComputeDetails,
    ("calculator", ActionType.UPDATE): ComputeDetails,
    ("converter", ActionType.READ): ConversionDetails,
    ("error", ActionType.READ): ErrorDetails,
    ("esign", ActionType.READ): ErrorDetails,
}


def record_type(entity: str, action_type: ActionType) -> Type[DetailRecord]:
    """Return the record registered for ``(entity, action_type)``."""
    return DETAIL_RECORDS.get((entity, action_type), OpaqueDetails)


def register_details(
    entity: str, action_type: ActionType, record: Type[DetailRecord]
) -> None:
    """Register ``record`` as the detail shape for ``(entity, action_type)``."""
    DETAIL_RECORDS[(entity, action_type)] = record


def parse_details(
    entity: str, action_type: ActionType, details: Mapping[str, Any]
) -> DetailRecord:
    """Parse ``details`` into the typed record for the combination."""
    return record_type(entity, action_type).model_validate(dict(details))


def normalize_details(
    entity: str, action_type: ActionType, details: Any, *, typed: bool = True
) -> Dict[str, Any]:
    """Validate caller-supplied details and return them as a plain dict.

    Mappings are checked in strict mode against the registered record and
    then stored as given, only converted to JSON-compatible values. Detail
    records are dumped as-is. Any other value is wrapped as
    ``{"value": str(details)}``. With ``typed=False`` the record check is
    skipped.
    """
    if details is None:
        return {}
    if isinstance(details, DetailRecord):
        return details.to_details()
    if not isinstance(details, Mapping):
        return {"value": str(details)}
    try:
        if typed:
            record_type(entity, action_type).model_validate(dict(details), strict=True)
        return to_jsonable_python(dict(details), by_alias=True)
    except (ValidationError, PydanticSerializationError) as exc:
        raise ValidationFailure(
            f"Audit logAction: invalid details for {entity}/{action_type.value}: {exc}",
            field="details",
        ) from exc
