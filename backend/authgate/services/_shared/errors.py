"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between the
credential store, the token codec, the revocation ledger and the services.

The translation to HTTP responses (RFC 7807) is handled by
``authgate/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_identifier').

    Returns
    -------
    bool
        True if the IntegrityError mentions the given constraint. SQLite
        reports the column instead (``users.identifier``), so callers usually
        check both spellings.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


class AuthenticationError(ServiceError):
    """
    Base class for every failure that must surface as a uniform 401.

    :ivar reason: Short machine-readable cause, logged server-side only.
    """

    reason = "unauthenticated"


class TokenError(AuthenticationError):
    """Base class for failures while verifying a presented token."""

    reason = "invalid_token"


# --------------------------------------------------------------------------- #
# Registration
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class DuplicateIdentifierError(ServiceError):
    """
    Raised when registering an identifier that already exists.

    :param identifier: The normalized identifier that collided.
    :type identifier: str
    """

    identifier: str

    def __str__(self) -> str:
        return f"Identifier already registered: {self.identifier}"


class WeakCredentialError(ServiceError):
    """
    Raised by a password policy when a raw password is rejected.

    :param message: Human-readable explanation, safe for clients.
    :param rule: Name of the failing rule (``min_length``, ``max_length`` ...).
    """

    def __init__(self, message: str, *, rule: str) -> None:
        super().__init__(message)
        self.rule = rule


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(AuthenticationError):
    """Raised on failed login. The message never says which half was wrong."""

    reason = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class MalformedTokenError(TokenError):
    """The token cannot be parsed or misses required claims."""

    reason = "malformed"


class SignatureInvalidError(TokenError):
    """The token signature does not verify against the current signing key."""

    reason = "signature_invalid"


class TokenExpiredError(TokenError):
    """The token's ``exp`` is in the past."""

    reason = "expired"


class TokenRevokedError(TokenError):
    """The token id, or every token of its subject, has been revoked."""

    reason = "revoked"


class LedgerUnavailableError(TokenError):
    """
    The revocation ledger could not be consulted.

    Verification fails closed: the token is treated as unauthenticated.
    """

    reason = "ledger_unavailable"


class LedgerWriteError(ServiceError):
    """
    A revocation could not be recorded.

    The presented token stays valid; surfaced as 503, never as 401.
    """
