from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from authgate.services._shared.dto import ProfileIn, UserIdentityOut
from authgate.services._shared.errors import DuplicateIdentifierError

# Verified against when the identifier is unknown, so both failure paths of a
# login cost one hash comparison.
DUMMY_PASSWORD_HASH = generate_password_hash("authgate-timing-equalizer")


def normalize_identifier(identifier: str) -> str:
    """Return the canonical (trimmed, lowercase) form of a login identifier."""
    return identifier.strip().lower()


class CredentialStore(Protocol):
    """
    Port over the persistence of user records.

    The store exclusively owns identities and password hashes; hashing and
    uniqueness are its responsibility.
    """

    def find_by_identifier(self, identifier: str) -> UserIdentityOut | None: ...

    def create(
        self, identifier: str, raw_password: str, profile: ProfileIn
    ) -> UserIdentityOut:
        """
        Persist a new identity.

        :raises DuplicateIdentifierError: When the identifier already exists.
        """

    def verify_password(self, identifier: str, raw_password: str) -> UserIdentityOut | None:
        """
        Compare ``raw_password`` against the stored hash in constant time.

        :returns: The identity on match, ``None`` for unknown identifier or mismatch.
        """


@dataclass(frozen=True)
class _Record:
    identity: UserIdentityOut
    password_hash: str


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store for unit tests and single-node demos."""

    def __init__(self) -> None:
        self._records: dict[str, _Record] = {}
        self._lock = threading.Lock()

    def find_by_identifier(self, identifier: str) -> UserIdentityOut | None:
        record = self._records.get(normalize_identifier(identifier))
        return record.identity if record else None

    def create(
        self, identifier: str, raw_password: str, profile: ProfileIn
    ) -> UserIdentityOut:
        key = normalize_identifier(identifier)
        with self._lock:
            if key in self._records:
                raise DuplicateIdentifierError(key)
            identity = UserIdentityOut(
                identifier=key,
                full_name=profile.full_name,
                email=profile.email,
                created_at=datetime.now(UTC),
            )
            self._records[key] = _Record(identity, generate_password_hash(raw_password))
            return identity

    def verify_password(self, identifier: str, raw_password: str) -> UserIdentityOut | None:
        record = self._records.get(normalize_identifier(identifier))
        if record is None:
            check_password_hash(DUMMY_PASSWORD_HASH, raw_password)
            return None
        if not check_password_hash(record.password_hash, raw_password):
            return None
        return record.identity

    def __len__(self) -> int:
        return len(self._records)
