# authgate/services/tokens/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from authgate.services._shared.base import BaseService
from authgate.services._shared.dto import (
    AuthenticatedSession,
    IssuedToken,
    ProfileIn,
    TokenClaims,
    UserIdentityOut,
)
from authgate.services._shared.errors import (
    InvalidCredentialsError,
    MalformedTokenError,
    SignatureInvalidError,
    TokenError,
    TokenExpiredError,
    TokenRevokedError,
)
from authgate.services._shared.ports import (
    ACCESS_TOKEN_KIND,
    CredentialStore,
    RevocationLedger,
    TokenCodec,
)
from authgate.services._shared.ports.credential_store import normalize_identifier
from authgate.services.tokens.dto import TokenLifetimeConfig
from authgate.services.tokens.policy import MinimumStrengthPolicy, PasswordPolicy

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenLifecycleManager(BaseService):
    """
    Issue, verify, rotate and revoke session tokens.

    Tokens are self-contained (signed claims); the only server-side state is
    the revocation ledger, shared by every instance. Verification runs in a
    fixed order: signature, expiry, token revocation, subject revoke-all.

    The manager holds no per-request state and is safe to share between
    worker threads.
    """

    def __init__(
        self,
        *,
        credentials: CredentialStore,
        codec: TokenCodec,
        ledger: RevocationLedger,
        token_cfg: TokenLifetimeConfig | None = None,
        password_policy: PasswordPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        :param credentials: Store owning identities and password hashes.
        :param codec: Signs and verifies tokens.
        :param ledger: Shared revocation ledger.
        :param token_cfg: Token lifetime configuration.
        :param password_policy: Registration password rules.
        :param clock: Source of aware UTC "now", injectable for tests.
        """
        self.credentials = credentials
        self.codec = codec
        self.ledger = ledger
        self.cfg = token_cfg or TokenLifetimeConfig()
        self.password_policy = password_policy or MinimumStrengthPolicy()
        self._clock = clock

    def now_utc(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------ #
    # Registration / login
    # ------------------------------------------------------------------ #

    def register(
        self, identifier: str, raw_password: str, profile: ProfileIn | None = None
    ) -> UserIdentityOut:
        """
        Create a user. Never issues a token.

        :raises WeakCredentialError: Password rejected by the policy.
        :raises DuplicateIdentifierError: Identifier already registered.
        """
        key = normalize_identifier(identifier)
        self.password_policy.validate(key, raw_password)
        identity = self.credentials.create(key, raw_password, profile or ProfileIn())
        logger.info("User registered", extra={"event": "user.registered", "subject": key})
        return identity

    def login(self, identifier: str, raw_password: str) -> IssuedToken:
        """
        Exchange credentials for a fresh token.

        :raises InvalidCredentialsError: Unknown identifier or wrong password,
            indistinguishable by message.
        """
        identity = self.credentials.verify_password(identifier, raw_password)
        if identity is None:
            logger.info(
                "Login failed",
                extra={"event": "login.failed", "subject": normalize_identifier(identifier)},
            )
            raise InvalidCredentialsError()
        return self._issue(identity.identifier, event="token.issued")

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def authenticate(self, token: str) -> AuthenticatedSession:
        """
        Verify ``token`` and resolve its subject.

        :raises MalformedTokenError: Token unparseable or of the wrong kind.
        :raises SignatureInvalidError: Signature does not verify.
        :raises TokenExpiredError: ``exp`` is at or before now.
        :raises TokenRevokedError: Token or subject revoked, or subject gone.
        :raises LedgerUnavailableError: Ledger unreachable; fails closed.
        """
        try:
            claims = self._verified_claims(token)
            identity = self.credentials.find_by_identifier(claims.subject)
            if identity is None:
                raise TokenRevokedError("Token subject no longer exists.")
        except TokenError as exc:
            logger.info("Token rejected", extra={"event": "token.rejected", "reason": exc.reason})
            raise
        return AuthenticatedSession(identity=identity, claims=claims)

    def verify(self, token: str) -> UserIdentityOut:
        return self.authenticate(token).identity

    def profile(self, token: str) -> UserIdentityOut:
        """Return the identity behind ``token``; a pure read after verification."""
        return self.verify(token)

    def _verified_claims(self, token: str) -> TokenClaims:
        now = self.now_utc()
        claims = self.codec.decode(token, now=now)
        if claims.kind != ACCESS_TOKEN_KIND:
            raise MalformedTokenError(f"Unexpected token kind: {claims.kind}")
        # strict: no leeway on expiry
        if claims.expires_at <= now:
            raise TokenExpiredError("Token has expired.")
        if self.ledger.is_revoked(claims.token_id):
            raise TokenRevokedError("Token has been revoked.")
        epoch = self.ledger.revoked_all_since(claims.subject)
        if epoch is not None and claims.issued_at <= epoch:
            raise TokenRevokedError("Every token of the subject has been revoked.")
        return claims

    # ------------------------------------------------------------------ #
    # Rotation / revocation
    # ------------------------------------------------------------------ #

    def refresh(self, token: str) -> IssuedToken:
        """
        Rotate ``token``: revoke it and issue a new one for the same subject.

        The old token id is claimed with the ledger's atomic check-and-set, so
        of two concurrent refreshes of one token exactly one succeeds.

        :raises TokenError: As :meth:`authenticate`; ``TokenRevokedError``
            also when a concurrent refresh won.
        :raises LedgerWriteError: The rotation could not be recorded.
        """
        session = self.authenticate(token)
        claims = session.claims
        if not self.ledger.revoke(claims.token_id, until=claims.expires_at):
            logger.info(
                "Token rejected",
                extra={"event": "token.rejected", "reason": TokenRevokedError.reason},
            )
            raise TokenRevokedError("Token was already rotated or revoked.")
        return self._issue(claims.subject, event="token.refreshed")

    def logout(self, token: str) -> None:
        """
        Revoke ``token``. Idempotent.

        A token whose signature fails, or which has already expired, is
        already unusable; logging it out is a successful no-op.

        :raises MalformedTokenError: Token cannot be parsed at all.
        :raises LedgerWriteError: The revocation could not be recorded.
        """
        now = self.now_utc()
        try:
            claims = self.codec.decode(token, now=now)
        except SignatureInvalidError:
            return
        if claims.expires_at <= now:
            return
        created = self.ledger.revoke(claims.token_id, until=claims.expires_at)
        if created:
            logger.info(
                "Token revoked",
                extra={"event": "token.revoked", "subject": claims.subject, "reason": "logout"},
            )

    def revoke_all(self, identifier: str) -> datetime:
        """
        Revoke every token issued to ``identifier`` up to now.

        Tokens issued afterwards are unaffected.

        :returns: The effective revoke-all epoch.
        :raises LedgerWriteError: The epoch could not be recorded.
        """
        key = normalize_identifier(identifier)
        epoch = self.ledger.revoke_all_for_subject(key, as_of=self.now_utc())
        logger.warning(
            "All tokens revoked for subject",
            extra={"event": "token.revoked", "subject": key, "reason": "revoke_all"},
        )
        return epoch

    def _issue(self, subject: str, *, event: str) -> IssuedToken:
        issued = self.codec.encode(
            subject=subject, ttl=self.cfg.access_ttl, now=self.now_utc(), kind=ACCESS_TOKEN_KIND
        )
        logger.info("Token issued", extra={"event": event, "subject": subject})
        return issued
