"""Unit tests for HealthAggregator: folding, timeouts, failures and budget."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

import pytest
from authgate.services.health import HealthAggregator, ProbeResult, ProbeStatus, fold


@dataclass
class StubProbe:
    name: str
    status: ProbeStatus = ProbeStatus.HEALTHY
    timeout: float = 1.0
    delay: float = 0.0
    error: Exception | None = None
    details: dict = field(default_factory=dict)

    def check(self) -> ProbeResult:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProbeResult(self.status, dict(self.details))


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        ({"database": ProbeStatus.HEALTHY, "cache": ProbeStatus.HEALTHY}, ProbeStatus.HEALTHY),
        ({"database": ProbeStatus.HEALTHY, "memory": ProbeStatus.WARNING}, ProbeStatus.HEALTHY),
        ({"database": ProbeStatus.UNHEALTHY, "memory": ProbeStatus.WARNING}, ProbeStatus.UNHEALTHY),
        ({}, ProbeStatus.HEALTHY),
    ],
)
def test_fold(statuses, expected):
    assert fold({name: ProbeResult(s) for name, s in statuses.items()}) is expected


def test_all_healthy_reports_each_check_with_latency():
    report = HealthAggregator([StubProbe("database"), StubProbe("cache", details={"round_trip": True})]).run()

    assert report.status is ProbeStatus.HEALTHY
    assert report.healthy
    assert set(report.checks) == {"database", "cache"}
    assert report.checks["cache"].details["round_trip"] is True
    assert "latency_ms" in report.checks["database"].details


def test_warning_is_informational():
    report = HealthAggregator(
        [StubProbe("database"), StubProbe("memory", status=ProbeStatus.WARNING)]
    ).run()

    assert report.status is ProbeStatus.HEALTHY
    assert report.checks["memory"].status is ProbeStatus.WARNING
    assert report.checks["memory"].to_dict()["status"] == "warning"


def test_raising_probe_is_unhealthy_and_others_still_run():
    report = HealthAggregator(
        [StubProbe("database", error=ConnectionError("refused")), StubProbe("cache")]
    ).run()

    assert report.status is ProbeStatus.UNHEALTHY
    assert not report.healthy
    assert report.checks["database"].details == {"error": "ConnectionError"}
    assert report.checks["cache"].status is ProbeStatus.HEALTHY


def test_hung_probe_times_out_without_delaying_others():
    release = threading.Event()

    class HangingProbe(StubProbe):
        def check(self) -> ProbeResult:
            release.wait(5)
            return ProbeResult(ProbeStatus.HEALTHY)

    aggregator = HealthAggregator(
        [HangingProbe("cache", timeout=0.2), StubProbe("database")], budget_seconds=3.0
    )
    try:
        started = time.monotonic()
        report = aggregator.run()
        elapsed = time.monotonic() - started
    finally:
        release.set()

    assert elapsed < 1.5
    assert report.status is ProbeStatus.UNHEALTHY
    assert report.checks["cache"].to_dict() == {"status": "unhealthy", "error": "timeout", "timeout_s": 0.2}
    assert report.checks["database"].status is ProbeStatus.HEALTHY


def test_budget_caps_slow_probes():
    probes = [StubProbe(f"slow{i}", timeout=5.0, delay=1.0) for i in range(3)]
    started = time.monotonic()
    report = HealthAggregator(probes, budget_seconds=0.2).run()

    assert time.monotonic() - started < 0.9
    assert all(r.details.get("error") == "timeout" for r in report.checks.values())


def test_probes_run_concurrently():
    probes = [StubProbe(f"p{i}", delay=0.3) for i in range(4)]
    started = time.monotonic()
    report = HealthAggregator(probes, budget_seconds=3.0).run()

    assert time.monotonic() - started < 1.0
    assert report.status is ProbeStatus.HEALTHY


def test_duplicate_probe_names_are_rejected():
    with pytest.raises(ValueError):
        HealthAggregator([StubProbe("database"), StubProbe("database")])


def test_no_probes_is_healthy():
    report = HealthAggregator([]).run()
    assert report.status is ProbeStatus.HEALTHY
    assert report.checks == {}
