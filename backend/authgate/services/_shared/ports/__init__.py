"""
authgate.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts the
token lifecycle manager and the health/diagnostics services depend on.

Modules
-------
- :mod:`credential_store`:
    Defines :class:`~.CredentialStore`: persistence of identities and password hashes.

- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`: signing and verification of session tokens.

- :mod:`revocation_ledger`:
    Defines :class:`~.RevocationLedger` plus the in-memory and TTL-cached
    implementations.

- :mod:`key_value_store`:
    Defines :class:`~.KeyValueStore`: the injected shared store used for
    diagnostics counters and the cache round-trip probe.

Design Notes
------------
All these ports follow the *Dependency Inversion Principle (DIP)* to keep
the service layer independent from implementation details.
Concrete adapters (Redis, SQLAlchemy, PyJWT) live under ``authgate.infra``.
"""

from __future__ import annotations

from .credential_store import CredentialStore, InMemoryCredentialStore
from .key_value_store import InMemoryKeyValueStore, KeyValueStore
from .revocation_ledger import (
    CachedRevocationLedger,
    InMemoryRevocationLedger,
    RevocationLedger,
)
from .token_codec import ACCESS_TOKEN_KIND, TokenCodec

__all__ = [
    "ACCESS_TOKEN_KIND",
    "CredentialStore",
    "InMemoryCredentialStore",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RevocationLedger",
    "InMemoryRevocationLedger",
    "CachedRevocationLedger",
    "TokenCodec",
]
