"""HTTP surface: authentication routes under a configurable prefix, probes at the root."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Prefix applied to all entries; may be empty.
    entries:
        ``(blueprint, relative_prefix)`` pairs; ``relative_prefix`` is
        appended to ``base_prefix``.
    """

    for bp, rel_prefix in entries:
        segments = [s for s in (base_prefix.strip("/"), rel_prefix.strip("/")) if s]
        app.register_blueprint(bp, url_prefix="/" + "/".join(segments) if segments else None)


def init_app(app: Flask) -> None:
    """Register blueprints and the request counter."""

    from authgate.api.auth import bp as auth_bp
    from authgate.api.deps import get_diagnostics
    from authgate.api.probes import bp as probes_bp
    from authgate.services.diagnostics.service import REQUESTS_TOTAL

    register_blueprint_group(
        app, base_prefix=app.config.get("API_BASE_PREFIX", ""), entries=[(auth_bp, "/auth")]
    )
    register_blueprint_group(app, base_prefix="", entries=[(probes_bp, "")])

    @app.before_request
    def _count_request() -> None:
        get_diagnostics().increment(REQUESTS_TOTAL)


__all__ = ["init_app", "register_blueprint_group"]
