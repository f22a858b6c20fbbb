"""In-memory implementation of the storage backend."""

from __future__ import annotations

from typing import Dict, Optional

from .backend import JsonBackend


class InMemoryBackend(JsonBackend):
    """Store values in local memory.

    Useful for tests or when no durable store is writable. Data is not
    persisted across process restarts.
    """

    name = "memory"

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def get_raw(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set_raw(self, key: str, value: str) -> bool:
        self._values[key] = value
        return True

    def remove(self, key: str) -> bool:
        self._values.pop(key, None)
        return True
