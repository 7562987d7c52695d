"""Unit tests for the in-memory and cached revocation ledgers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from authgate.services._shared.errors import LedgerUnavailableError
from authgate.services._shared.ports import CachedRevocationLedger, InMemoryRevocationLedger

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class CountingLedger(InMemoryRevocationLedger):
    """In-memory ledger counting reads, optionally failing on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.reads = 0
        self.fail = False

    def is_revoked(self, token_id: str) -> bool:
        self.reads += 1
        if self.fail:
            raise LedgerUnavailableError("down")
        return super().is_revoked(token_id)

    def revoked_all_since(self, subject: str):
        self.reads += 1
        return super().revoked_all_since(subject)


# ---------------------------- In-memory ledger ----------------------------- #
class TestInMemoryRevocationLedger:
    def test_revoke_is_first_writer_wins(self):
        ledger = InMemoryRevocationLedger()
        assert ledger.revoke("jti-1", until=T0) is True
        assert ledger.revoke("jti-1", until=T0) is False
        assert ledger.is_revoked("jti-1")
        assert not ledger.is_revoked("jti-2")

    def test_revoke_all_keeps_newest_epoch(self):
        ledger = InMemoryRevocationLedger()
        assert ledger.revoke_all_for_subject("alice", as_of=T0) == T0
        later = T0 + timedelta(minutes=5)
        assert ledger.revoke_all_for_subject("alice", as_of=later) == later
        # an older epoch arriving late does not move the cutoff back
        assert ledger.revoke_all_for_subject("alice", as_of=T0) == later
        assert ledger.revoked_all_since("alice") == later
        assert ledger.revoked_all_since("bob") is None

    def test_purge_drops_only_expired_records(self):
        ledger = InMemoryRevocationLedger()
        ledger.revoke("old", until=T0)
        ledger.revoke("fresh", until=T0 + timedelta(hours=1))

        assert ledger.purge_expired(T0 + timedelta(minutes=1)) == 1
        assert len(ledger) == 1
        assert ledger.is_revoked("fresh")
        assert not ledger.is_revoked("old")


# ------------------------------ Cached ledger ------------------------------ #
class TestCachedRevocationLedger:
    @pytest.fixture()
    def clock(self):
        return FakeMonotonic()

    @pytest.fixture()
    def inner(self):
        return CountingLedger()

    @pytest.fixture()
    def cached(self, inner, clock):
        return CachedRevocationLedger(inner, ttl_seconds=2, clock=clock)

    def test_rejects_non_positive_ttl(self, inner):
        with pytest.raises(ValueError):
            CachedRevocationLedger(inner, ttl_seconds=0)

    def test_negative_answer_is_cached_within_ttl(self, cached, inner, clock):
        assert cached.is_revoked("jti-1") is False
        assert cached.is_revoked("jti-1") is False
        assert inner.reads == 1

        # another instance revokes through the shared ledger
        inner.revoke("jti-1", until=T0)
        assert cached.is_revoked("jti-1") is False

        clock.now += 2.01
        assert cached.is_revoked("jti-1") is True

    def test_positive_answer_is_never_cached(self, cached, inner):
        inner.revoke("jti-1", until=T0)
        assert cached.is_revoked("jti-1") is True
        assert cached.is_revoked("jti-1") is True
        assert inner.reads == 2

    def test_local_revoke_is_visible_immediately(self, cached):
        assert cached.is_revoked("jti-1") is False
        assert cached.revoke("jti-1", until=T0) is True
        assert cached.is_revoked("jti-1") is True
        assert cached.revoke("jti-1", until=T0) is False

    def test_local_revoke_all_evicts_cached_epoch(self, cached, clock):
        assert cached.revoked_all_since("alice") is None
        cached.revoke_all_for_subject("alice", as_of=T0)
        assert cached.revoked_all_since("alice") == T0

    def test_inner_failure_propagates(self, cached, inner):
        inner.fail = True
        with pytest.raises(LedgerUnavailableError):
            cached.is_revoked("jti-1")

    def test_size_bound_evicts_oldest(self, inner, clock):
        cached = CachedRevocationLedger(inner, ttl_seconds=60, max_entries=2, clock=clock)
        for jti in ("a", "b", "c"):
            cached.is_revoked(jti)
        reads = inner.reads

        cached.is_revoked("c")
        assert inner.reads == reads
        cached.is_revoked("a")
        assert inner.reads == reads + 1

    def test_purge_clears_cache_and_delegates(self, cached, inner, clock):
        cached.is_revoked("jti-1")
        inner.revoke("jti-1", until=T0)
        assert cached.purge_expired(T0 - timedelta(seconds=1)) == 0
        assert cached.is_revoked("jti-1") is True
