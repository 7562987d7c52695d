# authgate/services/diagnostics/service.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from authgate.services._shared.ports import KeyValueStore
from authgate.services.health.probes import current_rss_bytes, peak_rss_bytes

logger = logging.getLogger(__name__)

REQUESTS_TOTAL = "requests_total"
LOGIN_SUCCEEDED = "auth.login.succeeded"
LOGIN_FAILED = "auth.login.failed"
REFRESH = "auth.refresh"
LOGOUT = "auth.logout"
REJECTED = "auth.rejected"

COUNTERS = (REQUESTS_TOTAL, LOGIN_SUCCEEDED, LOGIN_FAILED, REFRESH, LOGOUT, REJECTED)


class DiagnosticsService:
    """
    Counters and process facts for ``/status`` and ``/metrics``.

    Counters live in the injected shared store under ``{prefix}{name}``. Sums
    are fleet-wide only when every instance shares the store (Redis); the
    in-memory store counts this process alone. A failing store never fails
    the request that is being counted.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        service: str,
        version: str,
        environment: str,
        started_at: datetime,
        prefix: str = "metrics:",
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.store = store
        self.service = service
        self.version = version
        self.environment = environment
        self.started_at = started_at
        self.prefix = prefix
        self._clock = clock

    def increment(self, name: str, amount: int = 1) -> int | None:
        try:
            return self.store.incr(self.prefix + name, amount)
        except Exception:
            logger.warning(
                "Counter update failed", extra={"event": "metrics.error", "reason": name}, exc_info=True
            )
            return None

    def counters(self, names: Iterable[str] = COUNTERS) -> dict[str, int | None]:
        out: dict[str, int | None] = {}
        for name in names:
            try:
                raw = self.store.get(self.prefix + name)
            except Exception:
                logger.warning(
                    "Counter read failed", extra={"event": "metrics.error", "reason": name}, exc_info=True
                )
                out[name] = None
                continue
            out[name] = int(raw) if raw is not None else 0
        return out

    def status(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "service": self.service,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self._clock().isoformat(),
        }

    def metrics(self) -> dict[str, Any]:
        now = self._clock()
        return {
            "memory_usage": current_rss_bytes(),
            "memory_peak": peak_rss_bytes(),
            "uptime": round((now - self.started_at).total_seconds(), 3),
            "started_at": self.started_at.isoformat(),
            "counters": self.counters(),
            "timestamp": now.isoformat(),
        }
