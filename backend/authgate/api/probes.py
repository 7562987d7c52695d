"""Operational probes: liveness, readiness, status and metrics."""

from __future__ import annotations

import os
from datetime import UTC, datetime

from flask import Blueprint, current_app

from authgate.api.deps import get_diagnostics, json_response
from authgate.core.extensions import db, get_kv_store
from authgate.services.health import (
    CacheProbe,
    DatabaseProbe,
    HealthAggregator,
    MemoryProbe,
    check_readiness,
)

bp = Blueprint("probes", __name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def build_health_aggregator() -> HealthAggregator:
    cfg = current_app.config
    timeout = float(cfg.get("HEALTH_PROBE_TIMEOUT_SECONDS", 2.0))
    # resolved here: probe threads run outside the app context
    probes = [
        DatabaseProbe(db.engine, timeout=timeout),
        CacheProbe(get_kv_store(), timeout=timeout),
        MemoryProbe(
            limit_bytes=cfg.get("MEMORY_LIMIT_BYTES"),
            warning_percent=float(cfg.get("MEMORY_WARNING_PERCENT", 90.0)),
            timeout=timeout,
        ),
    ]
    return HealthAggregator(probes, budget_seconds=float(cfg.get("HEALTH_BUDGET_SECONDS", 3.0)))


@bp.get("/")
def service_info():
    """Name, version and environment of this deployment."""

    cfg = current_app.config
    return json_response(
        {
            "message": "{} token service".format(cfg.get("APP_NAME", "authgate")),
            "version": cfg.get("APP_VERSION", "dev"),
            "environment": get_diagnostics().environment,
            "timestamp": _now(),
        }
    )


@bp.get("/healthz")
def healthz():
    """Graded health of every dependency; 503 when any probe is unhealthy."""

    report = build_health_aggregator().run()
    body = {
        "status": report.status.value,
        "timestamp": _now(),
        "service": current_app.config.get("APP_NAME", "authgate"),
        "version": current_app.config.get("APP_VERSION", "dev"),
        "checks": {name: result.to_dict() for name, result in report.checks.items()},
    }
    return json_response(body, status=200 if report.healthy else 503)


@bp.get("/ready")
def ready():
    """Binary readiness: schema present and migrations applied."""

    migrate_state = current_app.extensions.get("migrate")
    directory = getattr(migrate_state, "directory", None)
    readiness = check_readiness(
        db.engine,
        db.metadata,
        migrations_dir=directory if directory and os.path.isdir(directory) else None,
    )
    if readiness.ready:
        return json_response({"status": "ready", "timestamp": _now()})
    return json_response(
        {"status": "not ready", "error": readiness.reason, "timestamp": _now()}, status=503
    )


@bp.get("/status")
def status():
    return json_response(get_diagnostics().status())


@bp.get("/metrics")
def metrics():
    return json_response(get_diagnostics().metrics())
