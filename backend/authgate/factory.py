"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from authgate.core.config import PLACEHOLDER_JWT_SECRET, BaseConfig, get_config
from authgate.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    _check_signing_key(app)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"), service=app.config.get("APP_NAME", "authgate"))

    # Proxy headers if running behind a reverse proxy
    if app.config.get("USE_PROXYFIX", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore[method-assign]

    from authgate.core import extensions

    extensions.init_app(app)

    _init_services(app)

    init_logging(app)

    from authgate.core import cors

    cors.init_app(app)

    from authgate.api import init_app as init_api

    init_api(app)

    from authgate.core import errors

    errors.init_app(app)

    from authgate import cli as app_cli

    app_cli.init_app(app)

    return app


def _check_signing_key(app: Flask) -> None:
    """Refuse to run outside development and testing with the placeholder key."""
    if app.config.get("DEBUG") or app.config.get("TESTING"):
        return
    key = app.config.get("JWT_SECRET_KEY")
    if not key or key == PLACEHOLDER_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set to a secret value in production.")


def _init_services(app: Flask) -> None:
    """Build the long-lived, thread-safe services and park them on ``app.extensions``."""
    from authgate.infra.jwt import JWTTokenCodec
    from authgate.infra.sqlalchemy import SQLAlchemyCredentialStore
    from authgate.services.diagnostics import DiagnosticsService
    from authgate.services.tokens import TokenLifecycleManager, TokenLifetimeConfig

    cfg = app.config
    codec = JWTTokenCodec(
        secret_key=cfg["JWT_SECRET_KEY"],
        algorithm=cfg.get("JWT_ALGORITHM", "HS256"),
        leeway=timedelta(seconds=cfg.get("TOKEN_CLOCK_SKEW_SECONDS", 5)),
    )
    app.extensions["token_lifecycle"] = TokenLifecycleManager(
        credentials=SQLAlchemyCredentialStore(),
        codec=codec,
        ledger=app.extensions["revocation_ledger"],
        token_cfg=TokenLifetimeConfig(
            access_ttl=timedelta(seconds=cfg.get("ACCESS_TOKEN_TTL_SECONDS", 3600))
        ),
    )
    app.extensions["diagnostics"] = DiagnosticsService(
        app.extensions["kv_store"],
        service=cfg.get("APP_NAME", "authgate"),
        version=cfg.get("APP_VERSION", "dev"),
        environment=_environment_name(app),
        started_at=datetime.now(UTC),
    )


def _environment_name(app: Flask) -> str:
    if app.config.get("TESTING"):
        return "testing"
    return "development" if app.config.get("DEBUG") else "production"
