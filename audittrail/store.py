"""Append-only audit trail store."""

from __future__ import annotations

import csv
import io
import json
import logging
import math
import platform
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .config import AuditTrailConfig, load_config
from .constants import (
    CSV_HEADERS,
    DEFAULT_PAGE,
    ERROR_REASON,
)
from .details import normalize_details
from .errors import ExportUnsupported, SignatureRequired, ValidationFailure
from .models import (
    ActionType,
    AuditEntry,
    ClearResult,
    ElectronicSignature,
    ErrorContext,
    ExportBundle,
    LogFilters,
    LogPage,
)
from .persistence import StorageBackend, get_backend

logger = logging.getLogger(__name__)


def generate_id(scope: str = "id") -> str:
    """Return a unique identifier prefixed with ``scope``."""
    return f"{scope}_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_strings(value: Union[str, Iterable[Any], None], upper: bool = False) -> List[str]:
    if value is None:
        return []
    values = [value] if isinstance(value, str) else list(value)
    out = []
    for item in values:
        text = str(item).strip()
        if text:
            out.append(text.upper() if upper else text)
    return out


def _coerce_int(value: Any, default: int) -> int:
    try:
        number = int(value or default)
    except (TypeError, ValueError):
        number = default
    return max(1, number)


def _parse_action(action_type: Any) -> ActionType:
    raw = action_type.value if isinstance(action_type, ActionType) else str(action_type or "")
    act = raw.strip().upper()
    try:
        return ActionType(act)
    except ValueError:
        raise ValidationFailure(
            f'Audit logAction: unsupported actionType "{act}"', field="actionType"
        ) from None


def _csv_cell(value: Any) -> str:
    return "" if value is None else str(value)


class AuditStore:
    """Attributable, append-only audit trail over a storage backend.

    Every write reads the whole log, appends and writes it back as one unit.
    The store assumes a single active writer: two writers sharing one backing
    store can race and the later write wins.
    """

    def __init__(
        self,
        backend: StorageBackend,
        config: Optional[AuditTrailConfig] = None,
    ) -> None:
        self._backend = backend
        self._config = config or AuditTrailConfig()
        self._key = self._config.storage.key

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # ------------------------------------------------------------------
    # Persistence helpers
    def _load_records(self) -> List[Dict[str, Any]]:
        data = self._backend.get(self._key, [])
        if not isinstance(data, list):
            logger.warning("Ignoring non-list audit trail stored under %s", self._key)
            return []
        return [record for record in data if isinstance(record, dict)]

    def _save_records(self, records: List[Dict[str, Any]]) -> bool:
        return self._backend.set(self._key, records)

    def iter_entries(self) -> List[AuditEntry]:
        """Return all entries in insertion order."""
        entries = []
        for record in self._load_records():
            try:
                entries.append(AuditEntry.model_validate(record))
            except ValidationError:
                logger.warning("Skipping malformed audit record %s", record.get("id"))
        return entries

    def count(self) -> int:
        """Return the number of persisted entries."""
        return len(self._load_records())

    def _metadata(self, overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        version = self._config.app_version
        metadata: Dict[str, Any] = {
            "appVersion": version,
            "userAgent": f"audittrail/{version} Python/{platform.python_version()}",
            "platform": platform.platform(),
        }
        if isinstance(overrides, Mapping):
            metadata.update(overrides)
        return metadata

    # ------------------------------------------------------------------
    # Public API
    def log_action(
        self,
        user_id: str,
        action_type: Union[ActionType, str],
        entity: str,
        details: Any = None,
        *,
        before: Any = None,
        after: Any = None,
        reason: Optional[str] = None,
        correlation_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> AuditEntry:
        """Record a user-attributed action and persist it.

        Raises:
            ValidationFailure: ``user_id`` or ``entity`` is blank, the action
                type is not CREATE/READ/UPDATE/DELETE, a DELETE has no reason,
                or the details or snapshots cannot be stored.
        """
        return self._append(
            user_id,
            action_type,
            entity,
            details,
            before=before,
            after=after,
            reason=reason,
            correlation_id=correlation_id,
            metadata=metadata,
        )

    def _append(
        self,
        user_id: Any,
        action_type: Union[ActionType, str],
        entity: Any,
        details: Any,
        *,
        before: Any = None,
        after: Any = None,
        reason: Optional[str] = None,
        correlation_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        typed: bool = True,
    ) -> AuditEntry:
        """Build and persist an entry; ``typed=False`` stores details unchecked."""
        uid = str(user_id or "").strip()
        if not uid:
            raise ValidationFailure("Audit logAction: userId is required", field="userId")
        act = _parse_action(action_type)
        ent = str(entity or "").strip()
        if not ent:
            raise ValidationFailure("Audit logAction: entity is required", field="entity")

        why = reason.strip() if isinstance(reason, str) else None
        if act is ActionType.DELETE and not why:
            raise ValidationFailure(
                "Audit logAction: reason is required for destructive actions (DELETE).",
                field="reason",
            )

        try:
            entry = AuditEntry(
                id=generate_id("audit"),
                user_id=uid,
                timestamp=_utcnow(),
                action_type=act,
                entity=ent,
                details=normalize_details(ent, act, details, typed=typed),
                before=before,
                after=after,
                reason=why or None,
                correlation_id=str(correlation_id or "").strip() or generate_id("corr"),
                metadata=self._metadata(metadata),
            )
            record = entry.to_record()
        except (ValidationError, PydanticSerializationError) as exc:
            raise ValidationFailure(f"Audit logAction: entry is not serializable: {exc}") from exc

        records = self._load_records()
        records.append(record)
        self._save_records(records)
        logger.debug(
            "Recorded %s on %s by %s (%s)", act.value, ent, uid, entry.id
        )
        return AuditEntry.model_validate(record)

    def get_logs(
        self,
        page: Any = DEFAULT_PAGE,
        page_size: Any = None,
        filters: Union[LogFilters, Mapping[str, Any], None] = None,
    ) -> LogPage:
        """Return one page of entries matching ``filters``.

        ``total`` and ``total_pages`` describe the filtered set. A page past
        the end has no items; ``total_pages`` is at least 1.
        """
        page = _coerce_int(page, DEFAULT_PAGE)
        page_size = _coerce_int(page_size, self._config.default_page_size)
        if filters is None:
            criteria = LogFilters()
        elif isinstance(filters, LogFilters):
            criteria = filters
        else:
            try:
                criteria = LogFilters.model_validate(dict(filters))
            except ValidationError as exc:
                raise ValidationFailure(f"Invalid audit log filters: {exc}", field="filters") from exc

        matched = [entry for entry in self.iter_entries() if _matches(entry, criteria)]
        total = len(matched)
        start = (page - 1) * page_size
        return LogPage(
            items=matched[start : start + page_size],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=max(1, math.ceil(total / page_size)),
        )

    def export_logs(self, format: str = "json") -> ExportBundle:
        """Export every entry as JSON or CSV.

        Raises:
            ExportUnsupported: ``format`` is neither ``json`` nor ``csv``.
        """
        fmt = str(format or "").strip().lower()
        if fmt not in ("json", "csv"):
            raise ExportUnsupported(str(format))

        records = [entry.to_record() for entry in self.iter_entries()]
        stamp = (
            _utcnow()
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
            .replace(":", "-")
            .replace(".", "-")
        )

        if fmt == "json":
            return ExportBundle(
                filename=f"audit-export-{stamp}.json",
                mime_type="application/json",
                content=json.dumps(records, indent=2),
            )

        buf = io.StringIO()
        buf.write(",".join(CSV_HEADERS) + "\n")
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for rec in records:
            writer.writerow(
                [
                    _csv_cell(rec["id"]),
                    _csv_cell(rec["timestamp"]),
                    _csv_cell(rec["userId"]),
                    _csv_cell(rec["actionType"]),
                    _csv_cell(rec["entity"]),
                    _csv_cell(rec["reason"]),
                    _csv_cell(rec["correlationId"]),
                    json.dumps(rec["details"]),
                    json.dumps(rec["before"]),
                    json.dumps(rec["after"]),
                    json.dumps(rec["metadata"]),
                ]
            )
        return ExportBundle(
            filename=f"audit-export-{stamp}.csv",
            mime_type="text/csv",
            content=buf.getvalue().rstrip("\n"),
        )

    def clear_logs(
        self, signature: Union[ElectronicSignature, Mapping[str, Any], None]
    ) -> ClearResult:
        """Discard every entry once an electronic signature is presented.

        No entry is appended here: the caller logs a DELETE entry carrying
        the signature payload right after the clear.

        Raises:
            SignatureRequired: username or password is blank.
        """
        if isinstance(signature, Mapping):
            try:
                signature = ElectronicSignature.model_validate(dict(signature))
            except ValidationError:
                raise SignatureRequired() from None
        username = (signature.username or "").strip() if signature is not None else ""
        password = signature.password if signature is not None else ""
        if not username or not password:
            raise SignatureRequired()

        cleared = self.count()
        self._backend.remove(self._key)
        self._save_records([])
        logger.warning("Audit trail cleared by %s (%d entries)", username, cleared)
        return ClearResult(cleared=cleared, timestamp=_utcnow())

    def record_error(
        self,
        error: Any,
        context: Union[ErrorContext, Mapping[str, Any], None] = None,
    ) -> Optional[AuditEntry]:
        """Capture a technical error as a READ entry.

        Never raises: any failure while building or persisting the entry is
        logged and ``None`` is returned.
        """
        try:
            if context is None:
                ctx = ErrorContext()
            elif isinstance(context, ErrorContext):
                ctx = context
            else:
                ctx = ErrorContext.model_validate(dict(context))

            if isinstance(error, BaseException):
                name = type(error).__name__
                message = str(error)
                stack = (
                    "".join(
                        traceback.format_exception(type(error), error, error.__traceback__)
                    )
                    if error.__traceback__
                    else None
                )
            else:
                name = "Error"
                message = str(error) if error is not None else "unknown error"
                stack = None

            details: Dict[str, Any] = {"name": name, "message": message, "stack": stack}
            details.update(ctx.extra)
            return self._append(
                ctx.user_id or "system",
                ActionType.READ,
                ctx.entity or "error",
                details,
                reason=ctx.reason or ERROR_REASON,
                correlation_id=ctx.correlation_id,
                typed=False,
            )
        except Exception:
            logger.exception("Failed to record error in audit trail")
            return None


def _matches(entry: AuditEntry, filters: LogFilters) -> bool:
    user_ids = _to_strings(filters.user_id)
    if user_ids and entry.user_id not in user_ids:
        return False
    actions = _to_strings(filters.action_type, upper=True)
    if actions and entry.action_type.value not in actions:
        return False
    entities = _to_strings(filters.entity)
    if entities and entry.entity not in entities:
        return False
    correlation_id = (filters.correlation_id or "").strip()
    if correlation_id and entry.correlation_id != correlation_id:
        return False

    stamp = _as_utc(entry.timestamp)
    if filters.from_ is not None and stamp < _as_utc(filters.from_):
        return False
    if filters.to is not None and stamp > _as_utc(filters.to):
        return False

    text = (filters.text or "").strip().lower()
    if text and text not in entry.model_dump_json(by_alias=True).lower():
        return False
    return True


def create_audit_store(
    config: Optional[AuditTrailConfig] = None, backend: Optional[str] = None
) -> AuditStore:
    """Build an :class:`AuditStore` over the configured backend."""
    config = config or load_config()
    return AuditStore(get_backend(backend, config=config), config=config)
