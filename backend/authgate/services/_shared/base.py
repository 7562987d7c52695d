# authgate/services/_shared/base.py
from __future__ import annotations

from authgate.core import errors as api_errors
from authgate.services._shared.errors import (
    AuthenticationError,
    DuplicateIdentifierError,
    LedgerWriteError,
    ServiceError,
    WeakCredentialError,
)

# One body for every authentication failure; the cause is only logged
UNAUTHORIZED_MESSAGE = "Authentication failed"


class BaseService:
    """
    Base class for application services.

    Centralizes the translation of service errors into API errors so every
    route reports them the same way.
    """

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised.
        """
        if isinstance(exc, AuthenticationError):
            # → 401, identical body for every cause
            return api_errors.Unauthorized(UNAUTHORIZED_MESSAGE)

        if isinstance(exc, LedgerWriteError):
            # → 503, the token is still valid
            return api_errors.ServiceUnavailable("Revocation could not be recorded")

        if isinstance(exc, DuplicateIdentifierError):
            # → 409 Conflict
            return api_errors.Conflict("Identifier already registered")

        if isinstance(exc, WeakCredentialError):
            # → 422 Unprocessable Entity
            return api_errors.APIError(
                message=str(exc),
                status_code=422,
                code="weak_credential",
                details={"rule": exc.rule},
            )

        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        return exc
