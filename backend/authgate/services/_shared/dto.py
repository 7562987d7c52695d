# comments in English; reST docstrings strict
"""Data contracts shared by the ports and the services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ProfileIn:
    """
    Mutable profile fields supplied at registration.

    :param full_name: Optional display name.
    :type full_name: str | None
    :param email: Optional contact email.
    :type email: str | None
    """

    full_name: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class UserIdentityOut:
    """
    Public-safe identity. The password hash is never part of this type.

    :param identifier: Immutable, unique login identifier (normalized).
    :type identifier: str
    :param full_name: Optional display name.
    :type full_name: str | None
    :param email: Optional contact email.
    :type email: str | None
    :param created_at: Registration timestamp (UTC).
    :type created_at: datetime | None
    """

    identifier: str
    full_name: str | None = None
    email: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified claims of a session token.

    :param subject: Identifier of the user the token names.
    :type subject: str
    :param token_id: Unique id per issuance (``jti``), target of revocation.
    :type token_id: str
    :param issued_at: ``iat`` as an aware UTC datetime.
    :type issued_at: datetime
    :param expires_at: ``exp`` as an aware UTC datetime.
    :type expires_at: datetime
    :param kind: Token kind (``access``).
    :type kind: str
    """

    subject: str
    token_id: str
    issued_at: datetime
    expires_at: datetime
    kind: str = "access"


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """
    A freshly minted token and its claims.

    :param token: Encoded, signed token handed to the client.
    :type token: str
    :param claims: The claims that were signed.
    :type claims: TokenClaims
    """

    token: str
    claims: TokenClaims

    @property
    def expires_at(self) -> datetime:
        return self.claims.expires_at


@dataclass(frozen=True, slots=True)
class AuthenticatedSession:
    """
    Outcome of a successful verification: a valid token paired with its identity.

    Never persisted.
    """

    identity: UserIdentityOut
    claims: TokenClaims

