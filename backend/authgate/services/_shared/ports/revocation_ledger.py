from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol


class RevocationLedger(Protocol):
    """
    Shared store of revocation facts, consulted by every service instance.

    Records are never mutated after creation and may be dropped once the
    token they reference has expired naturally. Reads may raise
    :class:`~authgate.services._shared.errors.LedgerUnavailableError`;
    writes (``revoke``, ``revoke_all_for_subject``) raise
    :class:`~authgate.services._shared.errors.LedgerWriteError`.
    """

    def revoke(self, token_id: str, *, until: datetime) -> bool:
        """
        Record ``token_id`` as revoked until its natural expiry.

        :returns: ``True`` if this call created the record, ``False`` if the
            token was already revoked. The check-and-set is atomic, which is
            what makes refresh rotation single-use.
        """

    def is_revoked(self, token_id: str) -> bool: ...

    def revoke_all_for_subject(self, subject: str, *, as_of: datetime | None = None) -> datetime:
        """
        Revoke every token of ``subject`` issued at or before ``as_of`` (default now).

        :returns: The effective revoke-all epoch.
        """

    def revoked_all_since(self, subject: str) -> datetime | None:
        """Return the subject's latest revoke-all epoch, if any."""

    def purge_expired(self, now: datetime | None = None) -> int:
        """Drop records whose natural expiry has passed. :returns: Number dropped."""


class InMemoryRevocationLedger(RevocationLedger):
    """
    Process-local ledger. Only correct for a single instance (tests, demos).

    Expired records are dropped lazily by :meth:`purge_expired`.
    """

    def __init__(self) -> None:
        self._revoked: dict[str, datetime] = {}
        self._epochs: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def revoke(self, token_id: str, *, until: datetime) -> bool:
        with self._lock:
            if token_id in self._revoked:
                return False
            self._revoked[token_id] = until
            return True

    def is_revoked(self, token_id: str) -> bool:
        return token_id in self._revoked

    def revoke_all_for_subject(self, subject: str, *, as_of: datetime | None = None) -> datetime:
        epoch = as_of or datetime.now(UTC)
        with self._lock:
            current = self._epochs.get(subject)
            # an older epoch never overrides a newer one
            if current is None or epoch > current:
                self._epochs[subject] = epoch
            return self._epochs[subject]

    def revoked_all_since(self, subject: str) -> datetime | None:
        return self._epochs.get(subject)

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        with self._lock:
            stale = [jti for jti, until in self._revoked.items() if until <= now]
            for jti in stale:
                del self._revoked[jti]
            return len(stale)

    def __len__(self) -> int:
        return len(self._revoked)


class CachedRevocationLedger(RevocationLedger):
    """
    Read-through wrapper caching **negative** answers for a bounded time.

    Consistency bound: a revocation recorded by any instance becomes visible
    here at most ``ttl_seconds`` later. Positive answers and writes always go
    to the wrapped ledger; a local write evicts the cached entry at once.

    :param inner: The shared ledger (e.g. Redis).
    :param ttl_seconds: Lifetime of a cached "not revoked" answer.
    :param max_entries: Size bound; the oldest entries are evicted first.
    :param clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        inner: RevocationLedger,
        *,
        ttl_seconds: float,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive; use the inner ledger directly.")
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._not_revoked: dict[str, float] = {}
        self._epochs: dict[str, tuple[datetime | None, float]] = {}
        self._lock = threading.Lock()

    def _evict_if_full(self, table: dict) -> None:
        while len(table) >= self.max_entries:
            # dicts keep insertion order: the first key is the oldest entry
            table.pop(next(iter(table)))

    def revoke(self, token_id: str, *, until: datetime) -> bool:
        with self._lock:
            self._not_revoked.pop(token_id, None)
        return self.inner.revoke(token_id, until=until)

    def is_revoked(self, token_id: str) -> bool:
        now = self._clock()
        with self._lock:
            cached_until = self._not_revoked.get(token_id)
            if cached_until is not None and cached_until > now:
                return False
        revoked = self.inner.is_revoked(token_id)
        if not revoked:
            with self._lock:
                self._not_revoked.pop(token_id, None)
                self._evict_if_full(self._not_revoked)
                self._not_revoked[token_id] = now + self.ttl_seconds
        return revoked

    def revoke_all_for_subject(self, subject: str, *, as_of: datetime | None = None) -> datetime:
        with self._lock:
            self._epochs.pop(subject, None)
        return self.inner.revoke_all_for_subject(subject, as_of=as_of)

    def revoked_all_since(self, subject: str) -> datetime | None:
        now = self._clock()
        with self._lock:
            cached = self._epochs.get(subject)
            if cached is not None and cached[1] > now:
                return cached[0]
        epoch = self.inner.revoked_all_since(subject)
        with self._lock:
            self._epochs.pop(subject, None)
            self._evict_if_full(self._epochs)
            self._epochs[subject] = (epoch, now + self.ttl_seconds)
        return epoch

    def purge_expired(self, now: datetime | None = None) -> int:
        with self._lock:
            self._not_revoked.clear()
            self._epochs.clear()
        return self.inner.purge_expired(now)
