"""
Session token minting and validation.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Callable

import jwt

from passgate.common.exceptions import VerificationRejected
from passgate.common.protocol import current_epoch_time

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

    from passgate.common.models import Certificate, Profile

JWT_SECRET_MESSAGE = b"jwt_secret"


class TokenIssuer:
    """Issues HS256 JWTs keyed by a signature of the server identity key."""

    def __init__(
        self,
        server_priv: Ed25519PrivateKey,
        issuer: str,
        algorithm: str = "HS256",
        clock: Callable[[], int] = current_epoch_time,
    ):
        # Ed25519 signatures are deterministic, so the secret is stable per key
        self._secret = server_priv.sign(JWT_SECRET_MESSAGE)
        self.issuer = issuer
        self.algorithm = algorithm
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def issue(
        self, certificate: Certificate, profile: Profile | None = None
    ) -> tuple[str, int]:
        """Mint a token for a verified certificate.

        Returns ``(token, expires_at_ms)``; the token never outlives the
        certificate it was issued for.
        """
        now = self.clock()
        expires_at = certificate.expires_at
        claims: dict[str, Any] = {
            "iss": self.issuer,
            "sub": certificate.user,
            "exp": expires_at // 1000,
            "iat": now // 1000,
            "jti": str(uuid.uuid4()),
            "user_address": certificate.user,
            "session_vk": certificate.session_vk,
            "creation_time": certificate.creation_time,
            "ttl_min": certificate.ttl_min,
            "profile": profile.model_dump() if profile else None,
        }
        token = jwt.encode(claims, self._secret, algorithm=self.algorithm)
        self.logger.debug("Issued session token for %s", certificate.user)
        return token, expires_at

    def decode(self, token: str) -> dict[str, Any]:
        """Validate signature, issuer and expiry; returns the claims."""
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as e:
            msg = "Authentication token has expired"
            raise VerificationRejected("expired_token", msg, 401) from e
        except jwt.InvalidTokenError as e:
            self.logger.debug("Token validation failed: %s", e)
            msg = "Invalid authentication token"
            raise VerificationRejected("invalid_token", msg, 401) from e
