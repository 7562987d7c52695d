# authgate/infra/jwt/jwt_token_codec.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt
from jwt.exceptions import InvalidAlgorithmError, InvalidSignatureError, PyJWTError

from authgate.services._shared.dto import IssuedToken, TokenClaims
from authgate.services._shared.errors import MalformedTokenError, SignatureInvalidError
from authgate.services._shared.ports import ACCESS_TOKEN_KIND, TokenCodec

REQUIRED_CLAIMS = ("sub", "jti", "iat", "exp", "type")


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    HMAC-signed JWS codec backed by PyJWT.

    Every claim (``sub``, ``jti``, ``iat``, ``exp``, ``type``) is covered by the
    signature, so none can change without invalidating it.

    :param secret_key: Current signing key.
    :param algorithm: JWS algorithm; the only one accepted on decode.
    :param leeway: Clock-skew grace applied to ``iat`` only.
    """

    secret_key: str
    algorithm: str = "HS256"
    leeway: timedelta = field(default_factory=lambda: timedelta(seconds=5))

    def encode(
        self,
        *,
        subject: str,
        ttl: timedelta,
        now: datetime,
        kind: str = ACCESS_TOKEN_KIND,
    ) -> IssuedToken:
        # millisecond iat keeps revoke-all epochs exact; claims mirror the payload
        iat = math.floor(now.timestamp() * 1000) / 1000
        exp = int((now + ttl).timestamp())
        claims = TokenClaims(
            subject=subject,
            token_id=uuid4().hex,
            issued_at=datetime.fromtimestamp(iat, tz=UTC),
            expires_at=datetime.fromtimestamp(exp, tz=UTC),
            kind=kind,
        )
        payload: dict[str, Any] = {
            "sub": claims.subject,
            "jti": claims.token_id,
            "iat": iat,
            "exp": exp,
            "type": claims.kind,
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=str(token), claims=claims)

    def decode(self, token: str, *, now: datetime) -> TokenClaims:
        if not isinstance(token, str) or token.count(".") != 2:
            raise MalformedTokenError("Token is not a compact JWS.")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                # exp/iat are judged below and by the lifecycle manager
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": list(REQUIRED_CLAIMS),
                },
            )
        except (InvalidSignatureError, InvalidAlgorithmError) as exc:
            raise SignatureInvalidError("Token signature does not verify.") from exc
        except PyJWTError as exc:
            raise MalformedTokenError(f"Token cannot be decoded: {exc}") from exc

        claims = self._to_claims(payload)
        if claims.issued_at > now + self.leeway:
            raise MalformedTokenError("Token is issued in the future.")
        return claims

    @staticmethod
    def _to_claims(payload: dict[str, Any]) -> TokenClaims:
        sub, jti, kind = payload["sub"], payload["jti"], payload["type"]
        iat, exp = payload["iat"], payload["exp"]
        if not all(isinstance(v, str) and v for v in (sub, jti, kind)):
            raise MalformedTokenError("Token has non-string identity claims.")
        if not all(isinstance(v, int | float) and not isinstance(v, bool) for v in (iat, exp)):
            raise MalformedTokenError("Token has non-numeric time claims.")
        return TokenClaims(
            subject=sub,
            token_id=jti,
            issued_at=datetime.fromtimestamp(iat, tz=UTC),
            expires_at=datetime.fromtimestamp(exp, tz=UTC),
            kind=kind,
        )
