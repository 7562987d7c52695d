"""Authentication endpoints backed by the token lifecycle manager."""

from __future__ import annotations

from flask import Blueprint, current_app, g, request

from authgate.api.deps import (
    get_diagnostics,
    get_lifecycle_manager,
    json_response,
    require_auth,
    require_bearer_token,
    service_errors,
    timing,
)
from authgate.core.extensions import limiter
from authgate.schemas import IdentitySchema, LoginSchema, RegisterSchema, TokenResponseSchema
from authgate.services._shared.dto import ProfileIn
from authgate.services._shared.errors import InvalidCredentialsError
from authgate.services.diagnostics.service import LOGIN_FAILED, LOGIN_SUCCEEDED, LOGOUT, REFRESH

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
identity_schema = IdentitySchema()
token_schema = TokenResponseSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "10 per minute"))


@bp.post("/register")
@timing
def register():
    """Create an identity. No token is issued; the client logs in next."""

    data = register_schema.load(request.get_json(silent=True) or {})
    manager = get_lifecycle_manager()
    with service_errors(manager):
        identity = manager.register(
            data["identifier"],
            data["password"],
            ProfileIn(full_name=data.get("full_name"), email=data.get("email")),
        )
    return json_response(identity_schema.dump(identity), status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Exchange credentials for a bearer token."""

    data = login_schema.load(request.get_json(silent=True) or {})
    manager = get_lifecycle_manager()
    diagnostics = get_diagnostics()
    with service_errors(manager):
        try:
            issued = manager.login(data["identifier"], data["password"])
        except InvalidCredentialsError:
            diagnostics.increment(LOGIN_FAILED)
            raise
    diagnostics.increment(LOGIN_SUCCEEDED)
    return json_response(token_schema.dump(issued))


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the presented token. Repeating the call is harmless."""

    manager = get_lifecycle_manager()
    with service_errors(manager):
        manager.logout(g.bearer_token)
    get_diagnostics().increment(LOGOUT)
    return json_response({"message": "Logged out"})


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the presented token; the old one stops working."""

    token = require_bearer_token()
    manager = get_lifecycle_manager()
    with service_errors(manager):
        issued = manager.refresh(token)
    get_diagnostics().increment(REFRESH)
    return json_response(token_schema.dump(issued))


@bp.get("/profile")
@timing
def profile():
    """Return the identity behind the presented token."""

    token = require_bearer_token()
    manager = get_lifecycle_manager()
    with service_errors(manager):
        identity = manager.profile(token)
    return json_response(identity_schema.dump(identity))
