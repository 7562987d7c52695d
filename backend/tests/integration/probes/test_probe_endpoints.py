"""/healthz and /ready against a file-backed database."""

from __future__ import annotations


class BrokenStore:
    def get(self, name):
        raise ConnectionError("store down")

    def set(self, name, value, ex=None):
        raise ConnectionError("store down")

    def incr(self, name, amount=1):
        raise ConnectionError("store down")


def test_healthz_all_healthy(probe_app):
    resp = probe_app.test_client().get("/healthz")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["service"] == probe_app.config["APP_NAME"]
    assert set(body["checks"]) == {"database", "cache", "memory"}
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["cache"]["status"] == "healthy"
    assert "latency_ms" in body["checks"]["database"]
    assert body["checks"]["memory"]["usage_bytes"] > 0


def test_healthz_memory_warning_stays_200(probe_app):
    probe_app.config["MEMORY_LIMIT_BYTES"] = 1024
    resp = probe_app.test_client().get("/healthz")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["memory"]["status"] == "warning"


def test_healthz_unhealthy_cache_is_503(probe_app):
    probe_app.extensions["kv_store"] = BrokenStore()
    resp = probe_app.test_client().get("/healthz")

    assert resp.status_code == 503
    body = resp.get_json()
    assert body["status"] == "unhealthy"
    assert body["checks"]["cache"] == {"status": "unhealthy", "error": "ConnectionError"}
    assert body["checks"]["database"]["status"] == "healthy"


def test_ready_when_schema_present(probe_app):
    resp = probe_app.test_client().get("/ready")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ready"


def test_not_ready_without_schema(empty_probe_app):
    resp = empty_probe_app.test_client().get("/ready")
    assert resp.status_code == 503
    body = resp.get_json()
    assert body["status"] == "not ready"
    assert body["error"] == "missing tables: users"
    assert "timestamp" in body
