"""Shared API helpers: service lookup, the bearer guard and response glue."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from authgate.core.errors import Unauthorized
from authgate.services._shared.base import UNAUTHORIZED_MESSAGE, BaseService
from authgate.services._shared.dto import AuthenticatedSession
from authgate.services._shared.errors import AuthenticationError, ServiceError
from authgate.services.diagnostics import DiagnosticsService
from authgate.services.diagnostics.service import REJECTED
from authgate.services.tokens import TokenLifecycleManager

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def get_lifecycle_manager() -> TokenLifecycleManager:
    return cast(TokenLifecycleManager, current_app.extensions["token_lifecycle"])


def get_diagnostics() -> DiagnosticsService:
    return cast(DiagnosticsService, current_app.extensions["diagnostics"])


@contextmanager
def service_errors(service: BaseService) -> Iterator[None]:
    """Re-raise service errors as API errors; authentication failures are counted."""
    try:
        yield
    except ServiceError as exc:
        if isinstance(exc, AuthenticationError):
            get_diagnostics().increment(REJECTED)
        raise service.translate_exceptions(exc) from exc


def require_bearer_token() -> str:
    """
    Extract the token from ``Authorization: Bearer <token>``.

    Absent and malformed headers fail with the same 401 as a bad token.
    """
    header = request.headers.get("Authorization", "")
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        reason = "missing_header" if not header else "malformed_header"
        logger.info("Token rejected", extra={"event": "token.rejected", "reason": reason})
        get_diagnostics().increment(REJECTED)
        raise Unauthorized(UNAUTHORIZED_MESSAGE)
    return parts[1]


def authenticate_request() -> AuthenticatedSession:
    """Verify the request's bearer token and remember the session on ``g``."""
    token = require_bearer_token()
    manager = get_lifecycle_manager()
    with service_errors(manager):
        session = manager.authenticate(token)
    g.bearer_token = token
    g.auth_session = session
    return session


def require_auth(func: F) -> F:
    """Reject the request with 401 unless it carries a valid bearer token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        authenticate_request()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
