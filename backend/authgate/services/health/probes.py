# authgate/services/health/probes.py
from __future__ import annotations

import math
import os
import resource
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import NullPool

from authgate.services._shared.ports import KeyValueStore
from authgate.services.health.aggregator import ProbeResult, ProbeStatus


def current_rss_bytes() -> int:
    """Resident set size of this process, falling back to the peak when /proc is absent."""
    try:
        with open("/proc/self/statm", encoding="ascii") as fh:
            resident_pages = int(fh.read().split()[1])
        return resident_pages * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError):
        return peak_rss_bytes()


def peak_rss_bytes() -> int:
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # kilobytes on Linux, bytes on macOS
    return peak if sys.platform == "darwin" else peak * 1024


def physical_memory_bytes() -> int | None:
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (ValueError, OSError, AttributeError):
        return None


def probe_connect_args(url: URL, timeout: float) -> dict[str, Any]:
    """DBAPI arguments bounding connect and statement time for ``url``'s driver."""
    seconds = max(1, math.ceil(timeout))
    backend, driver = url.get_backend_name(), url.get_driver_name()
    if backend == "postgresql" and driver in ("psycopg2", "psycopg"):
        return {"connect_timeout": seconds, "options": f"-c statement_timeout={int(timeout * 1000)}"}
    if backend in ("mysql", "mariadb") and driver in ("pymysql", "mysqldb"):
        return {"connect_timeout": seconds, "read_timeout": seconds}
    if backend == "sqlite":
        return {"timeout": timeout}
    return {}


@dataclass(slots=True)
class DatabaseProbe:
    """
    ``SELECT 1`` over a dedicated, unpooled connection.

    The connection carries driver-level connect and statement timeouts;
    the application pool is not used.
    """

    engine: Engine
    timeout: float = 2.0
    name: str = "database"

    def check(self) -> ProbeResult:
        url = self.engine.url
        probe_engine = create_engine(
            url, poolclass=NullPool, connect_args=probe_connect_args(url, self.timeout)
        )
        try:
            with probe_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        finally:
            probe_engine.dispose()
        return ProbeResult(ProbeStatus.HEALTHY, {"dialect": self.engine.dialect.name})


@dataclass(slots=True)
class CacheProbe:
    """Write a sentinel to the shared store, read it back and compare."""

    store: KeyValueStore
    timeout: float = 2.0
    name: str = "cache"
    key: str = "health_check"

    def check(self) -> ProbeResult:
        sentinel = uuid4().hex
        # one key per call: concurrent instances never read each other's sentinel
        key = f"{self.key}:{sentinel}"
        self.store.set(key, sentinel, ex=10)
        echoed = self.store.get(key)
        if echoed is None or echoed.decode() != sentinel:
            return ProbeResult(ProbeStatus.UNHEALTHY, {"error": "sentinel mismatch"})
        return ProbeResult(ProbeStatus.HEALTHY, {"round_trip": True})


@dataclass(slots=True)
class MemoryProbe:
    """
    Resident memory against a limit; ``warning`` at or above ``warning_percent``.

    :param limit_bytes: Explicit limit; defaults to physical memory.
    """

    limit_bytes: int | None = None
    warning_percent: float = 90.0
    timeout: float = 2.0
    name: str = "memory"
    rss_reader: Callable[[], int] = field(default=current_rss_bytes)

    def check(self) -> ProbeResult:
        usage = self.rss_reader()
        limit = self.limit_bytes or physical_memory_bytes()
        details: dict[str, int | float | None] = {"usage_bytes": usage, "limit_bytes": limit}
        if not limit:
            details["usage_percent"] = None
            return ProbeResult(ProbeStatus.HEALTHY, details)
        percent = round(usage / limit * 100, 2)
        details["usage_percent"] = percent
        status = ProbeStatus.HEALTHY if percent < self.warning_percent else ProbeStatus.WARNING
        return ProbeResult(status, details)
