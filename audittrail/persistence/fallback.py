"""Backend selector that degrades from a durable store to memory."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from .backend import JsonBackend
from .inmemory import InMemoryBackend

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (sqlite3.Error, OSError)


class FallbackBackend(JsonBackend):
    """Serve from a durable backend when it is writable, else from memory.

    The durable backend is probed once at construction. Storage errors raised
    by it later switch the selector to the in-memory backend for the rest of
    its lifetime; callers never see them.
    """

    def __init__(
        self,
        durable: Optional[JsonBackend] = None,
        memory: Optional[InMemoryBackend] = None,
    ) -> None:
        self._memory = memory or InMemoryBackend()
        self._active: JsonBackend = self._memory
        if durable is not None:
            if durable.probe():
                self._active = durable
            else:
                logger.warning(
                    "Durable %s store is not writable, using in-memory storage",
                    durable.name,
                )

    @property
    def name(self) -> str:  # type: ignore[override]
        return self._active.name

    @property
    def degraded(self) -> bool:
        """``True`` when values are only held in process memory."""
        return self._active is self._memory

    def _degrade(self, exc: BaseException) -> None:
        logger.warning(
            "Storage error on %s backend (%s), falling back to in-memory storage",
            self._active.name,
            exc,
        )
        self._active = self._memory

    def _call(self, method: str, *args: Any) -> Any:
        try:
            return getattr(self._active, method)(*args)
        except STORAGE_ERRORS as exc:
            if self._active is self._memory:
                raise
            self._degrade(exc)
            return getattr(self._memory, method)(*args)

    def get_raw(self, key: str) -> Optional[str]:
        return self._call("get_raw", key)

    def set_raw(self, key: str, value: str) -> bool:
        return self._call("set_raw", key, value)

    def remove(self, key: str) -> bool:
        result = self._call("remove", key)
        self._memory.remove(key)
        return result
