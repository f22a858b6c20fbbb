"""Storage abstraction for the audit trail."""

from __future__ import annotations

import abc
import json
import logging
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Protocol for key/value persistence backends."""

    name: str

    def get(self, key: str, fallback: Any = None) -> Any:
        """Return the decoded value for ``key`` or ``fallback``."""

    def set(self, key: str, value: Any) -> bool:
        """Store ``value`` as JSON under ``key``."""

    def remove(self, key: str) -> bool:
        """Delete ``key`` from the store."""

    def get_raw(self, key: str) -> Optional[str]:
        """Return the raw stored string for ``key``."""

    def set_raw(self, key: str, value: str) -> bool:
        """Store a raw string under ``key``."""


def safe_loads(raw: Optional[str], fallback: Any) -> Any:
    """Decode JSON text, returning ``fallback`` when missing or malformed."""
    if raw is None:
        return fallback
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.debug("Discarding malformed stored value")
        return fallback


def safe_dumps(value: Any) -> Optional[str]:
    """Encode ``value`` as JSON, returning ``None`` when it cannot be encoded."""
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return None


class JsonBackend(metaclass=abc.ABCMeta):
    """Base class adding JSON handling on top of raw string storage."""

    name = "base"

    @abc.abstractmethod
    def get_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def set_raw(self, key: str, value: str) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def remove(self, key: str) -> bool:
        raise NotImplementedError

    def get(self, key: str, fallback: Any = None) -> Any:
        return safe_loads(self.get_raw(key), fallback)

    def set(self, key: str, value: Any) -> bool:
        encoded = safe_dumps(value)
        if encoded is None:
            return False
        return self.set_raw(key, encoded)

    def probe(self) -> bool:
        """Return ``True`` when the backend can currently be written."""
        return True
