from __future__ import annotations

from typing import Protocol


class KeyValueCache(Protocol):
    """
    Port for a string key/value cache with per-key expiry.

    Adapters raise :class:`~portfolio_api.services._shared.errors.StorageError`
    when the backend cannot be reached. TTLs are whole seconds and must be
    positive.
    """

    def set(self, key: str, value: str, *, ttl: int) -> None: ...

    def add(self, key: str, value: str, *, ttl: int) -> bool:
        """Set ``key`` only when absent; return ``False`` if it already existed."""
        ...

    def get(self, key: str) -> str | None: ...

    def exists(self, key: str) -> bool: ...

    def delete(self, key: str) -> None: ...
