# authgate/services/health/aggregator.py
"""Concurrent health probing with a deterministic fold into one status."""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ProbeStatus(str, enum.Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """
    Outcome of one probe.

    :param status: Graded status.
    :param details: Metric values for operators (latency, bytes, percent, error).
    """

    status: ProbeStatus
    details: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, **self.details}


class Probe(Protocol):
    """One independent check of a subsystem dependency."""

    name: str
    timeout: float

    def check(self) -> ProbeResult: ...


@dataclass(frozen=True, slots=True)
class HealthReport:
    status: ProbeStatus
    checks: Mapping[str, ProbeResult]

    @property
    def healthy(self) -> bool:
        return self.status is not ProbeStatus.UNHEALTHY


def fold(results: Mapping[str, ProbeResult]) -> ProbeStatus:
    """
    Fold probe results into the overall status.

    Any ``unhealthy`` wins; ``warning`` is informational and leaves the
    overall status ``healthy``.
    """
    if any(r.status is ProbeStatus.UNHEALTHY for r in results.values()):
        return ProbeStatus.UNHEALTHY
    return ProbeStatus.HEALTHY


class HealthAggregator:
    """
    Run probes concurrently, each under its own timeout and all under a
    shared wall-clock budget.

    A probe that raises or misses its deadline is reported ``unhealthy``;
    it never delays or fails the others. Worker threads of hung probes are
    abandoned, not joined.

    :param probes: Probes to run, keyed by their ``name``.
    :param budget_seconds: Upper bound for the whole :meth:`run`.
    """

    def __init__(self, probes: Sequence[Probe], *, budget_seconds: float = 3.0) -> None:
        names = [p.name for p in probes]
        if len(set(names)) != len(names):
            raise ValueError(f"Probe names must be unique: {names}")
        self.probes = list(probes)
        self.budget_seconds = budget_seconds

    def run(self) -> HealthReport:
        if not self.probes:
            return HealthReport(status=ProbeStatus.HEALTHY, checks={})

        started = time.monotonic()
        executor = ThreadPoolExecutor(
            max_workers=len(self.probes), thread_name_prefix="health-probe"
        )
        try:
            futures: dict[str, Future[ProbeResult]] = {
                p.name: executor.submit(self._timed, p) for p in self.probes
            }
            results: dict[str, ProbeResult] = {}
            for probe in self.probes:
                # deadlines count from the common start, not from this wait
                deadline = started + min(probe.timeout, self.budget_seconds)
                future = futures[probe.name]
                wait([future], timeout=max(0.0, deadline - time.monotonic()))
                results[probe.name] = self._collect(probe, future)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        status = fold(results)
        if status is ProbeStatus.UNHEALTHY:
            failing = [name for name, r in results.items() if r.status is ProbeStatus.UNHEALTHY]
            logger.warning(
                "Health check failed",
                extra={"event": "health.unhealthy", "probe": ",".join(failing), "status": status.value},
            )
        return HealthReport(status=status, checks=results)

    @staticmethod
    def _timed(probe: Probe) -> ProbeResult:
        started = time.perf_counter()
        result = probe.check()
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        return ProbeResult(result.status, {**result.details, "latency_ms": latency_ms})

    @staticmethod
    def _collect(probe: Probe, future: Future[ProbeResult]) -> ProbeResult:
        if not future.done():
            future.cancel()
            return ProbeResult(ProbeStatus.UNHEALTHY, {"error": "timeout", "timeout_s": probe.timeout})
        exc = future.exception()
        if exc is not None:
            logger.warning(
                "Health probe raised",
                extra={"event": "health.probe_error", "probe": probe.name},
                exc_info=exc,
            )
            return ProbeResult(ProbeStatus.UNHEALTHY, {"error": type(exc).__name__})
        return future.result()
