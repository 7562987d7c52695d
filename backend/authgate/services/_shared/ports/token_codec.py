from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

from authgate.services._shared.dto import IssuedToken, TokenClaims

ACCESS_TOKEN_KIND = "access"


class TokenCodec(Protocol):
    """
    Port for encoding and decoding signed tokens.

    Implementations are pure: no I/O, no shared state beyond the signing key.
    """

    def encode(
        self,
        *,
        subject: str,
        ttl: timedelta,
        now: datetime,
        kind: str = ACCESS_TOKEN_KIND,
    ) -> IssuedToken:
        """Mint a token with a fresh ``token_id`` valid from ``now`` for ``ttl``."""

    def decode(self, token: str, *, now: datetime) -> TokenClaims:
        """
        Verify the signature and return the claims **without** an expiry check.

        Expiry is judged by the caller so that it can be ordered after the
        signature and compared strictly.

        :raises MalformedTokenError: Unparseable token or missing claims.
        :raises SignatureInvalidError: Signature does not match the signing key.
        """
