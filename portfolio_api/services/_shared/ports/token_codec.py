from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class TokenCodec(Protocol):
    """
    Port for signing and checking JWTs of two kinds (``access``, ``refresh``).

    Each kind has its own secret. ``sign`` stamps ``jti``, ``iat``, ``exp`` and
    ``type``; ``verify`` raises :class:`~portfolio_api.services._shared.errors.InvalidTokenError`
    (or its ``ExpiredTokenError`` subclass); ``decode`` skips verification.
    """

    def sign(self, claims: Mapping[str, Any], *, kind: str, ttl: int) -> str: ...

    def verify(self, token: str, *, kind: str) -> dict[str, Any]: ...

    def decode(self, token: str) -> dict[str, Any]: ...
