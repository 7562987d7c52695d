from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from authgate.services._shared.ports import InMemoryKeyValueStore
from authgate.services.diagnostics import COUNTERS, DiagnosticsService
from authgate.services.diagnostics.service import LOGIN_FAILED, REQUESTS_TOTAL

STARTED = datetime(2026, 2, 1, 8, 0, tzinfo=UTC)


class BrokenStore:
    def get(self, name):
        raise ConnectionError("store down")

    def set(self, name, value, ex=None):
        raise ConnectionError("store down")

    def incr(self, name, amount=1):
        raise ConnectionError("store down")


def _service(store, now=STARTED + timedelta(minutes=5)):
    return DiagnosticsService(
        store,
        service="authgate",
        version="1.2.3",
        environment="testing",
        started_at=STARTED,
        clock=lambda: now,
    )


def test_status_payload():
    assert _service(InMemoryKeyValueStore()).status() == {
        "status": "ok",
        "service": "authgate",
        "version": "1.2.3",
        "environment": "testing",
        "timestamp": (STARTED + timedelta(minutes=5)).isoformat(),
    }


def test_counters_accumulate_under_prefix():
    store = InMemoryKeyValueStore()
    diagnostics = _service(store)
    diagnostics.increment(REQUESTS_TOTAL)
    diagnostics.increment(REQUESTS_TOTAL)
    diagnostics.increment(LOGIN_FAILED, 3)

    counters = diagnostics.counters()
    assert set(counters) == set(COUNTERS)
    assert counters[REQUESTS_TOTAL] == 2
    assert counters[LOGIN_FAILED] == 3
    assert store.get("metrics:requests_total") == b"2"


def test_metrics_payload():
    metrics = _service(InMemoryKeyValueStore()).metrics()
    assert metrics["uptime"] == pytest.approx(300.0)
    assert metrics["started_at"] == STARTED.isoformat()
    assert metrics["memory_usage"] > 0
    assert metrics["memory_peak"] > 0
    assert all(v == 0 for v in metrics["counters"].values())


def test_failing_store_never_raises():
    diagnostics = _service(BrokenStore())
    assert diagnostics.increment(REQUESTS_TOTAL) is None
    assert all(v is None for v in diagnostics.counters().values())
    assert diagnostics.metrics()["counters"][REQUESTS_TOTAL] is None
