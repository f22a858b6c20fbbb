"""Persistence layer for the audit trail."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import AuditTrailConfig, load_config
from .backend import JsonBackend, StorageBackend
from .fallback import STORAGE_ERRORS, FallbackBackend
from .inmemory import InMemoryBackend
from .sqlite import SQLiteBackend

logger = logging.getLogger(__name__)


def get_backend(
    backend: Optional[str] = None, config: Optional[AuditTrailConfig] = None
) -> StorageBackend:
    """Factory function to obtain a storage backend.

    ``backend`` can be provided explicitly or taken from configuration:
    ``memory`` keeps values in process memory. ``sqlite`` requires the SQLite
    file to open and ``auto`` falls back to memory when it cannot. Both wrap
    the SQLite store in a :class:`FallbackBackend`, so later storage errors
    degrade to memory instead of reaching the caller.
    """

    config = config or load_config()
    backend = (backend or config.storage.backend).lower()

    if backend == "memory":
        return InMemoryBackend()
    if backend == "sqlite":
        return FallbackBackend(SQLiteBackend(config.storage.path))
    if backend == "auto":
        try:
            durable: Optional[SQLiteBackend] = SQLiteBackend(config.storage.path)
        except STORAGE_ERRORS as exc:
            logger.warning(
                "Cannot open %s (%s), using in-memory storage",
                config.storage.path,
                exc,
            )
            durable = None
        return FallbackBackend(durable)
    raise ValueError(f"Unsupported storage backend: {backend}")


__all__ = [
    "StorageBackend",
    "JsonBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "FallbackBackend",
    "get_backend",
]
