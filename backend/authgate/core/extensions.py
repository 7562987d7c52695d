"""Global Flask extension instances and the shared stores behind them."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import cast

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from authgate.services._shared.ports import (
    CachedRevocationLedger,
    InMemoryKeyValueStore,
    InMemoryRevocationLedger,
    KeyValueStore,
    RevocationLedger,
)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "migrations")

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
limiter = Limiter(key_func=get_remote_address)


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, rate limiting and the shared stores.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. With ``REDIS_URL`` the
        revocation ledger and the key-value store are Redis-backed (optionally
        behind a short negative cache); without it both are process-local.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from authgate import models as _models  # noqa: F401

    migrate.init_app(app, db, directory=os.path.normpath(MIGRATIONS_DIR))
    limiter.init_app(app)

    redis_url = app.config.get("REDIS_URL")
    ledger: RevocationLedger
    store: KeyValueStore
    if not redis_url:
        ledger = InMemoryRevocationLedger()
        store = InMemoryKeyValueStore()
    else:
        from authgate.infra.redis import RedisRevocationLedger

        timeout = app.config.get("REDIS_SOCKET_TIMEOUT", 1.0)
        redis_client = redis.Redis.from_url(
            redis_url, socket_timeout=timeout, socket_connect_timeout=timeout
        )
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc

        ledger = RedisRevocationLedger(
            redis_client,
            max_token_ttl=timedelta(seconds=app.config["ACCESS_TOKEN_TTL_SECONDS"]),
        )
        cache_ttl = app.config.get("REVOCATION_CACHE_TTL_SECONDS") or 0
        if cache_ttl > 0:
            ledger = CachedRevocationLedger(ledger, ttl_seconds=cache_ttl)
        store = redis_client

    app.extensions["revocation_ledger"] = ledger
    app.extensions["kv_store"] = store


def get_kv_store() -> KeyValueStore:
    return cast(KeyValueStore, current_app.extensions["kv_store"])
