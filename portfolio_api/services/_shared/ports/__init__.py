"""
Ports (hexagonal interfaces) the service layer depends on.

- :class:`TokenCodec`: JWT signing/verification with a secret per token kind.
- :class:`KeyValueCache`: expiring key/value storage for revocation records.
- :class:`CredentialStore`: identity persistence without password leakage.

Concrete adapters live under ``portfolio_api.infra``.
"""

from __future__ import annotations

from .credential_store import CredentialStore
from .key_value_cache import KeyValueCache
from .token_codec import TokenCodec

__all__ = ["CredentialStore", "KeyValueCache", "TokenCodec"]
