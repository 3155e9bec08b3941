from __future__ import annotations

from typing import cast

import redis  # type: ignore[import-untyped]

from portfolio_api.services._shared.errors import StorageError


class RedisCache:
    """
    :class:`~portfolio_api.services._shared.ports.KeyValueCache` over redis-py.

    Every key is stored under ``prefix`` so several deployments can share one
    Redis database. Connection and command failures surface as
    :class:`StorageError`.
    """

    def __init__(self, r: redis.Redis, *, prefix: str = "") -> None:
        self.r = r
        self.prefix = prefix

    def _k(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @staticmethod
    def _ttl(ttl: int) -> int:
        ttl = int(ttl)
        if ttl < 1:
            raise ValueError("Cache TTL must be a positive number of seconds.")
        return ttl

    def set(self, key: str, value: str, *, ttl: int) -> None:
        ex = self._ttl(ttl)
        try:
            self.r.set(self._k(key), value, ex=ex)
        except redis.RedisError as exc:
            raise StorageError(f"cache set failed for {key!r}") from exc

    def add(self, key: str, value: str, *, ttl: int) -> bool:
        ex = self._ttl(ttl)
        try:
            # SET NX EX: atomic set-if-absent
            return bool(self.r.set(self._k(key), value, ex=ex, nx=True))
        except redis.RedisError as exc:
            raise StorageError(f"cache add failed for {key!r}") from exc

    def get(self, key: str) -> str | None:
        try:
            raw = self.r.get(self._k(key))
        except redis.RedisError as exc:
            raise StorageError(f"cache get failed for {key!r}") from exc
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return cast(str | None, raw)

    def exists(self, key: str) -> bool:
        try:
            return cast(int, self.r.exists(self._k(key))) == 1
        except redis.RedisError as exc:
            raise StorageError(f"cache exists failed for {key!r}") from exc

    def delete(self, key: str) -> None:
        try:
            self.r.delete(self._k(key))
        except redis.RedisError as exc:
            raise StorageError(f"cache delete failed for {key!r}") from exc
