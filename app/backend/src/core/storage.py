"""Storage backend protocol for request attachments."""

from __future__ import annotations

from typing import Protocol


class StorageBackend(Protocol):
    """Minimal protocol for attachment storage backends."""

    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Persist bytes and return the stored object key."""

    def url(self, key: str) -> str:
        """Return a download URL for a stored object."""


class InMemoryStorage:
    """Dictionary-backed storage used for local experiments and tests."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[bytes, str]] = {}

    def put(self, key: str, data: bytes, content_type: str) -> str:
        self._store[key] = (data, content_type)
        return key

    def url(self, key: str) -> str:
        if key not in self._store:
            raise KeyError(key)
        return f"memory://{key}"

    def read(self, key: str) -> bytes:
        return self._store[key][0]

    def keys(self) -> list[str]:
        return list(self._store)
