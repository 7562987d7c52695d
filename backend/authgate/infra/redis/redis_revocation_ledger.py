from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import cast

import redis  # type: ignore[import-untyped]

from authgate.services._shared.errors import LedgerUnavailableError, LedgerWriteError
from authgate.services._shared.ports import RevocationLedger


class RedisRevocationLedger(RevocationLedger):
    """
    Revocation ledger shared by every instance through Redis.

    Token ids are stored as ``deny:jti:{jti}`` markers expiring with the
    token; revoke-all epochs as ``deny:sub:{subject}`` timestamps kept for
    the longest token lifetime. Redis expiry is the garbage collector.

    :param r: A Redis client (already connected).
    :param max_token_ttl: Longest lifetime a token can have.
    """

    def __init__(self, r: redis.Redis, *, max_token_ttl: timedelta):
        self.r = r
        self.max_token_ttl = max_token_ttl

    @staticmethod
    def _k(jti: str) -> str:
        return f"deny:jti:{jti}"

    @staticmethod
    def _ks(subject: str) -> str:
        return f"deny:sub:{subject}"

    def revoke(self, token_id: str, *, until: datetime) -> bool:
        now = datetime.now(UTC).timestamp()
        ttl = max(1, int(until.timestamp() - now) + 1)
        try:
            # NX makes the first writer win; later calls are no-ops
            created = self.r.set(self._k(token_id), "1", ex=ttl, nx=True)
        except redis.RedisError as exc:
            raise LedgerWriteError("Revocation ledger write failed.") from exc
        return bool(created)

    def is_revoked(self, token_id: str) -> bool:
        try:
            return cast(int, self.r.exists(self._k(token_id))) == 1
        except redis.RedisError as exc:
            raise LedgerUnavailableError("Revocation ledger read failed.") from exc

    def revoke_all_for_subject(self, subject: str, *, as_of: datetime | None = None) -> datetime:
        epoch = (as_of or datetime.now(UTC)).timestamp()
        key = self._ks(subject)
        ttl = max(1, int(self.max_token_ttl.total_seconds()) + 1)
        try:
            # Optimistic locking: an older epoch never replaces a newer one
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        current = p.get(key)
                        if current is not None and float(current) >= epoch:
                            p.unwatch()
                            return datetime.fromtimestamp(float(current), tz=UTC)
                        p.multi()
                        p.set(key, repr(epoch), ex=ttl)
                        p.execute()
                        return datetime.fromtimestamp(epoch, tz=UTC)
                except redis.WatchError:
                    continue
        except redis.RedisError as exc:
            raise LedgerWriteError("Revocation ledger write failed.") from exc

    def revoked_all_since(self, subject: str) -> datetime | None:
        try:
            raw = self.r.get(self._ks(subject))
        except redis.RedisError as exc:
            raise LedgerUnavailableError("Revocation ledger read failed.") from exc
        if raw is None:
            return None
        return datetime.fromtimestamp(float(raw), tz=UTC)

    def purge_expired(self, now: datetime | None = None) -> int:
        # Keys expire on their own
        return 0
