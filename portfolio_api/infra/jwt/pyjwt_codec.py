"""HS256 token codec with an independent secret per token kind (PyJWT)."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import jwt

from portfolio_api.services._shared.errors import (
    ExpiredTokenError,
    InvalidTokenError,
    TokenSigningError,
)

#: Claims every token minted here carries
REQUIRED_CLAIMS = ("sub", "jti", "iat", "exp")


class PyJWTCodec:
    """
    Sign, verify and decode access/refresh tokens.

    :param access_secret: HMAC secret for ``access`` tokens.
    :type access_secret: str
    :param refresh_secret: HMAC secret for ``refresh`` tokens.
    :type refresh_secret: str
    :param algorithm: JWS algorithm (``HS256`` by default).
    :type algorithm: str
    """

    def __init__(self, access_secret: str, refresh_secret: str, algorithm: str = "HS256") -> None:
        self._secrets = {"access": access_secret, "refresh": refresh_secret}
        self.algorithm = algorithm

    def secret_for(self, kind: str) -> str:
        """
        Return the secret bound to ``kind``.

        :raises InvalidTokenError: For an unknown kind.
        """
        try:
            return self._secrets[kind]
        except KeyError as exc:
            raise InvalidTokenError(f"Unknown token kind: {kind!r}") from exc

    def sign(self, claims: Mapping[str, Any], *, kind: str, ttl: int) -> str:
        """
        Mint a token of ``kind`` valid for ``ttl`` seconds.

        A fresh ``jti`` is generated for every call; ``iat``/``exp`` are unix
        seconds, ``iat_ms`` is the issue time in milliseconds and ``type`` is
        set to ``kind``.

        :raises TokenSigningError: If the payload cannot be encoded.
        """
        issued = datetime.now(UTC).timestamp()
        now = int(issued)
        payload = dict(claims)
        if "sub" in payload:
            payload["sub"] = str(payload["sub"])
        payload.update(
            jti=str(uuid4()),
            iat=now,
            iat_ms=int(issued * 1000),
            exp=now + int(ttl),
            type=kind,
        )
        try:
            return jwt.encode(payload, self.secret_for(kind), algorithm=self.algorithm)
        except (InvalidTokenError, jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenSigningError(f"Could not sign {kind} token") from exc

    def verify(self, token: str, *, kind: str) -> dict[str, Any]:
        """
        Verify signature, expiry, required claims and token kind.

        :raises ExpiredTokenError: When ``exp`` is in the past.
        :raises InvalidTokenError: For any other failure.
        """
        try:
            claims = jwt.decode(
                token,
                self.secret_for(kind),
                algorithms=[self.algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(str(exc) or "Invalid token") from exc

        if claims.get("type") != kind:
            raise InvalidTokenError(f"Expected a {kind} token")
        return claims

    def decode(self, token: str) -> dict[str, Any]:
        """
        Read claims without verifying anything.

        Only for revocation bookkeeping and secret selection; never trust the
        result for authentication.

        :raises InvalidTokenError: If the token is not a decodable JWT.
        """
        try:
            claims = jwt.decode(
                token,
                options={"verify_signature": False},
                algorithms=[self.algorithm],
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("Malformed token") from exc
        if not isinstance(claims, dict):
            raise InvalidTokenError("Malformed token")
        return claims
