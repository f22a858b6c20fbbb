"""Data models for audit trail records and query results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from .details import DetailRecord


class ActionType(str, Enum):
    """CRUD action kinds accepted by the audit trail."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class CamelModel(BaseModel):
    """Base model whose serialized field names are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


class AuditEntry(CamelModel):
    """One immutable, attributable audit trail record."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore"
    )

    id: str
    user_id: str
    timestamp: datetime
    action_type: ActionType
    entity: str
    details: Dict[str, Any] = Field(default_factory=dict)
    before: Any = None
    after: Any = None
    reason: Optional[str] = None
    correlation_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def typed_details(self) -> "DetailRecord":
        """Return ``details`` parsed into the record registered for this entry."""
        from .details import parse_details

        return parse_details(self.entity, self.action_type, self.details)


class SignaturePayload(CamelModel):
    """Electronic signature bound to a signer, a motive and a point in time."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    signer_id: str
    iso_timestamp: str
    signature_hash: str
    reason: Optional[str] = None
    comment: Optional[str] = None


class ElectronicSignature(CamelModel):
    """Credentials presented to authorize a destructive operation."""

    username: str = ""
    password: str = Field(default="", repr=False)
    reason: Optional[str] = None


class IdentityContext(CamelModel):
    """Identity returned by an identity verifier. Never carries secrets."""

    id: str
    username: str
    display_name: str = ""
    roles: List[str] = Field(default_factory=list)


FilterValue = Union[str, List[str], None]


class LogFilters(CamelModel):
    """Criteria combined with logical AND when querying the log."""

    user_id: FilterValue = None
    action_type: FilterValue = None
    entity: FilterValue = None
    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None
    correlation_id: Optional[str] = None
    text: Optional[str] = None


class LogPage(CamelModel):
    """One page of filtered audit entries."""

    items: List[AuditEntry] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 1


class ExportBundle(CamelModel):
    """Serialized export of the full log."""

    filename: str
    mime_type: str
    content: str


class ClearResult(CamelModel):
    """Outcome of a signed clear operation."""

    cleared: int
    timestamp: datetime


class ErrorContext(CamelModel):
    """Context attached to a captured technical error."""

    user_id: str = "system"
    entity: str = "error"
    reason: Optional[str] = None
    correlation_id: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "ActionType",
    "AuditEntry",
    "SignaturePayload",
    "ElectronicSignature",
    "IdentityContext",
    "LogFilters",
    "LogPage",
    "ExportBundle",
    "ClearResult",
    "ErrorContext",
]
